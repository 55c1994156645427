"""
方向轉換功能模組
"""

from photo_ingest.features.orientation.transform import (
    ORIENTATION_TABLE,
    AffineTransform,
    OrientationTransform,
    transform_for,
)


__all__ = ["ORIENTATION_TABLE", "AffineTransform", "OrientationTransform", "transform_for"]
