"""
Admission token issuer.

A token is a hex digest of "<namespace>-<queue>-<user_id>". There is no
secret key: anyone who knows the scheme and a user id can rebuild the
token, so it is a capability fingerprint for edge checks, not a
credential. Expiry is left to the delivery mechanism (cookie max-age).
"""

import hashlib
import hmac
import logging

from waitroom.config import get_settings
from waitroom.constants import DEFAULT_TOKEN_ALGORITHM, DEFAULT_TOKEN_NAMESPACE
from waitroom.errors import HashAlgorithmUnavailableError

logger = logging.getLogger(__name__)


class TokenIssuer:
    """Deterministic token generation and verification."""

    def __init__(
        self,
        namespace: str = DEFAULT_TOKEN_NAMESPACE,
        algorithm: str = DEFAULT_TOKEN_ALGORITHM,
    ):
        """
        Initialize the issuer.

        Args:
            namespace: Leading component of the hashed string.
            algorithm: hashlib algorithm name.

        Raises:
            HashAlgorithmUnavailableError: If hashlib does not provide `algorithm`.
        """
        try:
            hashlib.new(algorithm)
        except ValueError as e:
            logger.error("Token hash algorithm unavailable", extra={"algorithm": algorithm})
            raise HashAlgorithmUnavailableError(algorithm) from e

        self.namespace = namespace
        self.algorithm = algorithm

    def generate(self, queue: str, user_id: int | str) -> str:
        """
        Generate the token for a user in a queue.

        Returns:
            Lowercase hex digest.
        """
        raw = f"{self.namespace}-{queue}-{user_id}"
        return hashlib.new(self.algorithm, raw.encode("utf-8")).hexdigest()

    def verify(self, queue: str, user_id: int | str, candidate: str | None) -> bool:
        """Case-insensitive comparison of `candidate` with the generated token."""
        if not candidate:
            return False
        expected = self.generate(queue, user_id)
        return hmac.compare_digest(
            expected.encode("utf-8"),
            candidate.lower().encode("utf-8"),
        )


def get_token_issuer() -> TokenIssuer:
    """Create a token issuer from settings."""
    settings = get_settings()
    return TokenIssuer(
        namespace=settings.token_namespace,
        algorithm=settings.token_algorithm,
    )
