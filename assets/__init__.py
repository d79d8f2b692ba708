"""
assets package

Image asset resolution for design elements and the product background.
"""

from assets.loader import (
    InlineImageLoader,
    ImageLoadWorker,
    LoadedImage,
    ThreadedImageLoader,
    load_image,
)

__all__ = [
    "InlineImageLoader",
    "ImageLoadWorker",
    "LoadedImage",
    "ThreadedImageLoader",
    "load_image",
]
