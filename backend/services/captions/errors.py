"""Error taxonomy for the caption pipeline."""

from __future__ import annotations


class CaptionError(Exception):
    """Base class for failures while producing a subtitle file."""

    def __init__(self, message: str, talk_id: str | None = None, language: str | None = None):
        super().__init__(message)
        self.talk_id = talk_id
        self.language = language


class NetworkError(CaptionError):
    """The provider could not be reached or answered with an error status."""


class ParseError(CaptionError):
    """The provider answered with a payload that is not a caption document."""


class NotFoundError(CaptionError):
    """The provider has no captions for the requested talk and language."""


class StorageError(CaptionError):
    """A rendered file could not be written to the cache directory."""
