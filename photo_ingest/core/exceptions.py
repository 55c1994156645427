"""
圖片處理錯誤

所有錯誤訊息皆可直接顯示給使用者
"""


class ImageIngestError(Exception):
    """圖片處理錯誤基底類別"""


class ValidationError(ImageIngestError):
    """檔案驗證失敗"""


class NotAnImageError(ValidationError):
    """宣告的類型不是圖片"""

    def __init__(self) -> None:
        super().__init__("Please select an image file")


class ImageTooLargeError(ValidationError):
    """壓縮前檔案超過大小上限"""

    def __init__(self, limit_mb: float) -> None:
        self.limit_mb = limit_mb
        super().__init__(f"Image too large. Maximum size is {limit_mb:g}MB")


class UnsupportedFormatError(ValidationError):
    """圖片格式不在允許清單中"""

    def __init__(self) -> None:
        super().__init__("Unsupported image format. Use JPEG, PNG, WebP, or GIF")


class DecodeFailureError(ImageIngestError):
    """來源位元組無法解碼為任何圖片"""

    def __init__(self, detail: str = "") -> None:
        message = "Failed to load image"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class EncodeFailureError(ImageIngestError):
    """編碼器無法產生與畫布一致的輸出"""

    def __init__(self, detail: str = "") -> None:
        message = "Failed to compress image"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class SourceReadError(ImageIngestError):
    """來源檔案無法讀取"""

    def __init__(self, detail: str = "") -> None:
        message = "Failed to read file"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
