"""
照片匯入處理

驗證、EXIF 方向校正、尺寸規劃與自適應 WebP 壓縮
"""

__version__ = "0.1.0"
