"""Error taxonomy shared by the stores, the workflow services and the API.

Every operation fails fast on the first error. Endpoints let these
propagate; the handler registered in ``app.main`` turns them into JSON
responses with the matching status code.
"""

from typing import Optional

from fastapi import status


class SkillSwapError(Exception):
    """Base class for all application errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class UnauthorizedError(SkillSwapError):
    """Missing or invalid caller identity."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class ForbiddenError(SkillSwapError):
    """Caller is not a party to the resource."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not allowed"


class NotFoundError(SkillSwapError):
    """Profile, match or notification absent."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class InvalidArgumentError(SkillSwapError):
    """Missing required field or unrecognized value."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid argument"


class StorageError(SkillSwapError):
    """Backing-store call failed."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Storage error"
