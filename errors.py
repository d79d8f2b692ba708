"""
errors.py

Exception types raised or reported by the design-canvas engine.
"""

from __future__ import annotations


class CanvasError(Exception):
    """Base class for engine errors."""


class ResourceError(CanvasError):
    """An image asset could not be fetched or decoded.

    Never raised out of ``add_image``; it is delivered to the caller inside
    an ``ImageResult`` and the scene is left unchanged.
    """

    def __init__(self, source: str, reason: str):
        super().__init__(f"Could not load image {source!r}: {reason}")
        self.source = source
        self.reason = reason


class LifecycleError(CanvasError):
    """A session was used before ``init()`` or after ``dispose()``."""
