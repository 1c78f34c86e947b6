"""
Waiting room error types.
"""

from fastapi import status


class WaitingRoomError(Exception):
    """Base exception for waiting room failures."""

    code = "WAITING_ROOM_ERROR"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class AlreadyRegisteredError(WaitingRoomError):
    """User is already waiting in the queue."""

    code = "QUEUE_ALREADY_REGISTERED_USER"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, queue: str, user_id: int | str):
        self.queue = queue
        self.user_id = user_id
        super().__init__(f"User {user_id} is already registered in queue {queue!r}")


class TokenMismatchError(WaitingRoomError):
    """Presented token does not match the one issued for (queue, user)."""

    code = "QUEUE_TOKEN_MISMATCH"
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, queue: str, user_id: int | str):
        self.queue = queue
        self.user_id = user_id
        super().__init__(f"Invalid token for user {user_id} in queue {queue!r}")


class StoreUnavailableError(WaitingRoomError):
    """The queue store could not be reached or did not answer in time."""

    code = "STORE_UNAVAILABLE"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class HashAlgorithmUnavailableError(WaitingRoomError):
    """The configured digest algorithm is missing from this runtime."""

    code = "HASH_ALGORITHM_UNAVAILABLE"

    def __init__(self, algorithm: str):
        self.algorithm = algorithm
        super().__init__(f"Hash algorithm {algorithm!r} is not available")
