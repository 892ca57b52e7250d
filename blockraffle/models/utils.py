"""Utility helpers for the models package."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import SQLAlchemyError

from ..errors import StoreError


@contextmanager
def store_operation(action: str) -> Iterator[None]:
    """Re-raise database errors inside the block as :class:`StoreError`.

    ``action`` describes the operation in progress (``"listing bets"``) and
    prefixes the error message so that logs read like a call trail.
    """

    try:
        yield
    except SQLAlchemyError as e:
        raise StoreError(f"{action}: {e}") from e
