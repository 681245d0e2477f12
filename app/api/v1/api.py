from fastapi import APIRouter

from app.api.v1.endpoints import matches, messages, notifications, profiles

api_router = APIRouter()

# Profile directory endpoints
api_router.include_router(profiles.router, prefix="/profiles", tags=["profiles"])

# Match engine endpoints
api_router.include_router(matches.router, prefix="/matches", tags=["matches"])

# Notification and resolution endpoints
api_router.include_router(
    notifications.router, prefix="/notifications", tags=["notifications"]
)

# Chat endpoints for accepted matches
api_router.include_router(messages.router, prefix="/messages", tags=["messages"])
