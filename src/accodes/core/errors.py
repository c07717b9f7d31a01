"""Exceptions raised by the accodes ingest pipeline."""

from typing import List, Optional, Sequence


class AccodesError(Exception):
    """Base class for all pipeline errors."""


class ConfigError(AccodesError):
    """Invalid pipeline configuration."""


class NotInitializedError(AccodesError):
    """A page batch was loaded before the document record was created."""

    def __init__(self, message: str = "Loader not initialized; create the document record first"):
        super().__init__(message)


class LoaderStateError(AccodesError):
    """The loader received an operation its current state does not allow."""


class StorageError(AccodesError):
    """A storage operation failed; nothing from the failed unit was committed."""

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        page_numbers: Optional[Sequence[int]] = None,
    ):
        super().__init__(message)
        self.cause = cause
        self.page_numbers: List[int] = list(page_numbers or [])

    def __str__(self) -> str:
        text = super().__str__()
        if self.cause is not None:
            text = f"{text}: {self.cause}"
        return text
