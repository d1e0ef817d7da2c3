# backend/app/errors.py
"""
Error types raised by the photo and routing services.
Routers translate them into HTTP responses.
"""
from typing import Optional


class ProsecuError(Exception):
    """Base class for service errors."""
    def __init__(self, message: str, details: Optional[str] = None):
        self.message = message
        self.details = details
        super().__init__(self.message)


class PhotoProcessingError(ProsecuError):
    pass


class UnreadableImageError(PhotoProcessingError):
    """The source file is not a decodable raster image."""
    pass


class FilesystemError(PhotoProcessingError):
    """Reading the source or writing an output file failed."""
    pass


class RouteSequencingError(ProsecuError):
    pass


class EmptyStopSetError(RouteSequencingError):
    """A route was requested with no stops."""
    pass


class DuplicateStopError(RouteSequencingError):
    pass


class InvalidSequenceError(RouteSequencingError):
    """An optimizer returned something other than a permutation of its input."""
    pass


class InvalidStatusTransitionError(RouteSequencingError):
    pass
