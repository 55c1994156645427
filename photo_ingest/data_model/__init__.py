"""
資料模型模組

提供圖片處理流程的核心資料結構，使用 Pydantic 進行驗證
"""

from .core import (
    BYTES_PER_MB,
    OUTPUT_EXTENSION,
    OUTPUT_MIME_TYPE,
    BatchResult,
    Dimensions,
    EncodedImage,
    ImageSource,
    Orientation,
    ProcessingOptions,
    UploadPayload,
    webp_filename,
)

__all__ = [
    "BYTES_PER_MB",
    "OUTPUT_EXTENSION",
    "OUTPUT_MIME_TYPE",
    "BatchResult",
    "Dimensions",
    "EncodedImage",
    "ImageSource",
    "Orientation",
    "ProcessingOptions",
    "UploadPayload",
    "webp_filename",
]
