"""
自適應編碼功能模組
"""

from photo_ingest.features.encoding.adaptive import (
    AdaptiveEncoder,
    EncoderProtocol,
    PillowWebPEncoder,
)


__all__ = ["AdaptiveEncoder", "EncoderProtocol", "PillowWebPEncoder"]
