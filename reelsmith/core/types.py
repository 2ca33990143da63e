"""Shared type aliases."""

from collections.abc import Callable

from sqlalchemy.ext.asyncio import AsyncSession

# Callable returning a new AsyncSession, used as an async context manager
SessionFactory = Callable[[], AsyncSession]

__all__ = [
    "SessionFactory",
]
