"""
Engine wiring for request handlers and the scheduler.
"""

from functools import lru_cache

from waitroom.admission.engine import AdmissionEngine
from waitroom.store.connection import get_store
from waitroom.tokens import TokenIssuer, get_token_issuer


@lru_cache
def _token_issuer() -> TokenIssuer:
    return get_token_issuer()


def get_admission_engine() -> AdmissionEngine:
    """
    Build an engine over the process-wide store.

    Engines hold no state, so a fresh one per request is cheap; the store
    and token issuer underneath are shared.
    """
    return AdmissionEngine(get_store(), _token_issuer())
