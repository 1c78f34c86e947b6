"""
Application constants.
Centralized location for all constant values used across the application.
"""

from enum import StrEnum


class QueueState(StrEnum):
    """
    Per (queue, user) admission states.

    State transitions:
    - UNREGISTERED -> WAITING (register)
    - WAITING -> ADMITTED (admit, batched in registration order)

    Membership in the wait/proceed sorted sets is the state; nothing else
    is stored.
    """

    UNREGISTERED = "unregistered"
    WAITING = "waiting"
    ADMITTED = "admitted"


# Sorted set key layout, shared with any existing stored data
QUEUE_KEY_PREFIX = "users:queue:"
WAIT_KEY_SUFFIX = ":wait"
PROCEED_KEY_SUFFIX = ":proceed"
USER_QUEUE_WAIT_KEY = QUEUE_KEY_PREFIX + "{queue}" + WAIT_KEY_SUFFIX
USER_QUEUE_PROCEED_KEY = QUEUE_KEY_PREFIX + "{queue}" + PROCEED_KEY_SUFFIX
USER_QUEUE_WAIT_KEY_FOR_SCAN = QUEUE_KEY_PREFIX + "*" + WAIT_KEY_SUFFIX

# Rank sentinels
RANK_NOT_WAITING = -1
RANK_ADMITTED = 0

# Default values
DEFAULT_QUEUE = "default"
DEFAULT_TOKEN_NAMESPACE = "user-queue"
DEFAULT_TOKEN_ALGORITHM = "sha256"
TOKEN_COOKIE_NAME = "user-queue-{queue}-token"

# API constants
API_V1_PREFIX = "/api/v1"

# Metrics names
METRIC_REGISTRATIONS = "queue_registrations_total"
METRIC_ADMITTED = "queue_admitted_total"
METRIC_QUEUE_DEPTH = "queue_depth"
METRIC_SCHEDULER_CYCLES = "admission_scheduler_cycles_total"
METRIC_API_REQUESTS = "api_requests_total"
METRIC_API_LATENCY = "api_request_latency_seconds"

# Trace span names
SPAN_REGISTER = "queue.register"
SPAN_ADMIT = "queue.admit"
SPAN_SCHEDULER_CYCLE = "queue.scheduler_cycle"


def wait_key(queue: str) -> str:
    """Sorted set key holding the waiting members of a queue."""
    return USER_QUEUE_WAIT_KEY.format(queue=queue)


def proceed_key(queue: str) -> str:
    """Sorted set key holding the admitted members of a queue."""
    return USER_QUEUE_PROCEED_KEY.format(queue=queue)


def queue_name_from_wait_key(key: str) -> str | None:
    """
    Extract the queue name from a wait key.

    Queue names may themselves contain ':', so the name is everything
    between the fixed prefix and suffix.
    """
    if not (key.startswith(QUEUE_KEY_PREFIX) and key.endswith(WAIT_KEY_SUFFIX)):
        return None
    name = key[len(QUEUE_KEY_PREFIX):-len(WAIT_KEY_SUFFIX)]
    return name or None
