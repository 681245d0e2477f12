from typing import Optional

import structlog
from descope import AuthException, DescopeClient
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import settings
from app.core.exceptions import SkillSwapError, UnauthorizedError

logger = structlog.get_logger(__name__)


# Initialize Descope client (only if configured)
descope_client: Optional[DescopeClient] = None
if settings.DESCOPE_PROJECT_ID:
    try:
        descope_client = DescopeClient(
            project_id=settings.DESCOPE_PROJECT_ID,
            management_key=settings.DESCOPE_MANAGEMENT_KEY,
        )
        logger.info(
            "Descope client initialized",
            project_id=settings.DESCOPE_PROJECT_ID[:4] + "***",
        )
    except Exception as e:
        logger.error("Failed to initialize Descope client", error=str(e))
        descope_client = None

# Missing credentials are reported as UnauthorizedError, not FastAPI's 403
security = HTTPBearer(auto_error=False)


def _user_id_from_claims(jwt_response: dict) -> Optional[str]:
    session_claims = jwt_response.get("sessionToken") or {}
    return (
        jwt_response.get("userId")
        or jwt_response.get("sub")
        or session_claims.get("sub")
    )


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """
    Resolve the verified caller identity.

    - With Descope configured: validates the session JWT and returns its subject
    - In test/dev: the bearer token itself is taken as the user id
    """
    if credentials is None or not credentials.credentials.strip():
        raise UnauthorizedError("Unauthorized")

    token = credentials.credentials.strip()

    if not descope_client:
        return token

    try:
        jwt_response = (
            descope_client.validate_session(token, settings.DESCOPE_AUDIENCE)
            if settings.DESCOPE_AUDIENCE
            else descope_client.validate_session(token)
        )
    except AuthException as e:
        logger.warning("Descope session validation failed", error=str(e))
        raise UnauthorizedError("Unauthorized")
    except Exception as e:
        logger.error("Unexpected authentication error", error=str(e))
        raise SkillSwapError("Authentication service error") from e

    user_id = _user_id_from_claims(jwt_response)
    if not user_id:
        logger.warning("Session token carries no subject")
        raise UnauthorizedError("Unauthorized")
    return user_id
