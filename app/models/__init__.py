# Import all models to ensure they are registered with SQLAlchemy
from . import match, message, notification, profile

__all__ = [
    "match",
    "message",
    "notification",
    "profile",
]
