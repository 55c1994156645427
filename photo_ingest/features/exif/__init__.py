"""
EXIF 方向讀取功能模組
"""

from photo_ingest.features.exif.orientation_reader import (
    read_orientation,
    read_orientation_from_file,
)


__all__ = ["read_orientation", "read_orientation_from_file"]
