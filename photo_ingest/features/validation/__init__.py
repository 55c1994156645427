"""
檔案驗證功能模組
"""

from photo_ingest.features.validation.validator import (
    SUPPORTED_SUBTYPES,
    is_supported_type,
    validate_image,
)


__all__ = ["SUPPORTED_SUBTYPES", "is_supported_type", "validate_image"]
