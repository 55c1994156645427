"""
圖片檔案驗證

在任何解碼工作之前，只檢查呼叫端已提供的類型字串與位元組長度
"""

import logging
from typing import Final

from photo_ingest.core.exceptions import (
    ImageTooLargeError,
    NotAnImageError,
    UnsupportedFormatError,
)
from photo_ingest.data_model import ImageSource


logger = logging.getLogger(__name__)


IMAGE_TYPE_PREFIX: Final[str] = "image/"
DEFAULT_MAX_SIZE_MB: Final[float] = 10.0

# 以子字串比對 MIME 子類型（非完全相等）
SUPPORTED_SUBTYPES: Final[tuple[str, ...]] = (
    "jpeg",
    "jpg",
    "png",
    "webp",
    "gif",
    "heic",
    "heif",
)


def is_supported_type(mime_type: str) -> bool:
    """MIME 類型是否包含任一支援的子類型"""
    lowered = mime_type.lower()
    return any(subtype in lowered for subtype in SUPPORTED_SUBTYPES)


def validate_image(source: ImageSource, max_size_mb: float = DEFAULT_MAX_SIZE_MB) -> None:
    """
    驗證圖片檔案

    依序檢查：是否為圖片、大小是否超過上限、格式是否支援

    Args:
        source: 圖片來源
        max_size_mb: 壓縮前允許的最大大小 (MB)

    Raises:
        NotAnImageError: MIME 類型不是 image/*
        ImageTooLargeError: 檔案超過 max_size_mb
        UnsupportedFormatError: 格式不在允許清單中
    """
    if not source.mime_type.startswith(IMAGE_TYPE_PREFIX):
        logger.debug("Rejected %s: type %r is not an image", source.name, source.mime_type)
        raise NotAnImageError

    if source.size_mb > max_size_mb:
        logger.debug(
            "Rejected %s: %.2fMB exceeds %sMB", source.name, source.size_mb, max_size_mb
        )
        raise ImageTooLargeError(max_size_mb)

    if not is_supported_type(source.mime_type):
        logger.debug("Rejected %s: unsupported type %r", source.name, source.mime_type)
        raise UnsupportedFormatError
