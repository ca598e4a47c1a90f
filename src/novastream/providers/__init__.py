"""Media provider drivers."""

from .providers_base import MediaProvider, UpstreamError
from .providers_cloudinary import CloudinaryDriver

__all__ = ["CloudinaryDriver", "MediaProvider", "UpstreamError"]
