"""
核心模組 - 錯誤定義、處理流程與批次處理

注意：流程與處理器使用延遲導入，features 模組需要先載入 exceptions
"""

from typing import TYPE_CHECKING

from .exceptions import (
    DecodeFailureError,
    EncodeFailureError,
    ImageIngestError,
    ImageTooLargeError,
    NotAnImageError,
    SourceReadError,
    UnsupportedFormatError,
    ValidationError,
)


if TYPE_CHECKING:
    from .pipeline import ImagePipeline, compress_image
    from .processor import ImageProcessor


def __getattr__(name: str) -> object:
    """延遲導入流程類別，避免循環依賴"""
    if name in ("ImagePipeline", "compress_image"):
        from . import pipeline

        return getattr(pipeline, name)
    if name == "ImageProcessor":
        from .processor import ImageProcessor

        return ImageProcessor
    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)


__all__ = [
    "DecodeFailureError",
    "EncodeFailureError",
    "ImageIngestError",
    "ImageTooLargeError",
    "ImagePipeline",
    "ImageProcessor",
    "NotAnImageError",
    "SourceReadError",
    "UnsupportedFormatError",
    "ValidationError",
    "compress_image",
]
