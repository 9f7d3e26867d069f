"""Core components of the ticket booking user service."""

from __future__ import annotations

from typing import Any

from .exceptions import (
    DuplicateResourceError,
    InvalidArgumentError,
    ResourceNotFoundError,
    UserServiceError,
)
from .models import UserRecord
from .repository import InMemoryUserRepository
from .service import UserService


def create_app(*args: Any, **kwargs: Any):
    """Factory function that returns the FastAPI application."""

    from .api import create_app as _create_app

    return _create_app(*args, **kwargs)


__all__ = [
    "DuplicateResourceError",
    "InMemoryUserRepository",
    "InvalidArgumentError",
    "ResourceNotFoundError",
    "UserRecord",
    "UserService",
    "UserServiceError",
    "create_app",
]
