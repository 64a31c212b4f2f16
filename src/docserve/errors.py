"""Exception types shared across DocServe."""

from __future__ import annotations


class DocServeError(Exception):
    """Base class for DocServe errors."""


class NotFoundError(DocServeError, LookupError):
    """A document, path or category folder does not exist."""


class InvalidArgumentError(DocServeError, ValueError):
    """Caller input was rejected before touching the index."""


class SourceUnavailableError(DocServeError):
    """The content source failed for a reason other than "not found"."""
