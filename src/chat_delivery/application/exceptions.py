from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class StoreError(AppError):
    """The document store could not serve a read or write."""


class CommitError(StoreError):
    """The delivery batch was rejected; nothing from it was applied."""
