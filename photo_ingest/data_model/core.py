"""
核心資料模型

使用 Pydantic 進行資料驗證，所有模型建立後皆不可變
"""

import mimetypes
import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Final

from pydantic import BaseModel, ConfigDict, Field


BYTES_PER_MB: Final[int] = 1024 * 1024
OUTPUT_MIME_TYPE: Final[str] = "image/webp"
OUTPUT_EXTENSION: Final[str] = ".webp"

_EXTENSION_PATTERN = re.compile(r"\.[^/.]+$")


class Orientation(IntEnum):
    """EXIF 方向碼 (1-8)"""

    NORMAL = 1
    MIRROR_HORIZONTAL = 2
    ROTATE_180 = 3
    MIRROR_VERTICAL = 4
    TRANSPOSE = 5
    ROTATE_90_CW = 6
    TRANSVERSE = 7
    ROTATE_90_CCW = 8

    @classmethod
    def from_value(cls, value: int) -> "Orientation":
        """超出 1-8 範圍的值一律視為 NORMAL"""
        try:
            return cls(value)
        except ValueError:
            return cls.NORMAL

    @property
    def swaps_dimensions(self) -> bool:
        """5-8 為 90 度類旋轉，寬高需要互換"""
        return self >= Orientation.TRANSPOSE


@dataclass(frozen=True, slots=True)
class Dimensions:
    """
    像素尺寸

    Attributes:
        width: 寬度 (> 0)
        height: 高度 (> 0)
    """

    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            msg = f"Dimensions must be positive, got {self.width}x{self.height}"
            raise ValueError(msg)

    def swapped(self) -> "Dimensions":
        """寬高互換"""
        return Dimensions(self.height, self.width)

    def fits(self, max_width: int, max_height: int) -> bool:
        """是否已在邊界內"""
        return self.width <= max_width and self.height <= max_height


class ImageSource(BaseModel):
    """
    原始圖片來源

    Attributes:
        data: 原始檔案位元組
        mime_type: 宣告的 MIME 類型
        name: 原始檔名
    """

    model_config = ConfigDict(frozen=True)

    data: bytes
    mime_type: str
    name: str = "image"

    @property
    def size(self) -> int:
        """位元組長度"""
        return len(self.data)

    @property
    def size_mb(self) -> float:
        """以 MiB 表示的大小"""
        return self.size / BYTES_PER_MB

    @classmethod
    def from_path(cls, path: Path, mime_type: str | None = None) -> "ImageSource":
        """
        從檔案建立來源

        Args:
            path: 檔案路徑
            mime_type: MIME 類型，None 時依副檔名推測

        Returns:
            圖片來源
        """
        if mime_type is None:
            guessed, _ = mimetypes.guess_type(path.name)
            mime_type = guessed or _guess_image_type(path.suffix)
        return cls(data=path.read_bytes(), mime_type=mime_type, name=path.name)


def _guess_image_type(suffix: str) -> str:
    # mimetypes 在部分平台不認得 heic/heif/webp
    suffix = suffix.lower().lstrip(".")
    if suffix in {"heic", "heif", "webp"}:
        return f"image/{suffix}"
    return "application/octet-stream"


class ProcessingOptions(BaseModel):
    """
    處理設定

    Attributes:
        max_width: 最大寬度（像素）
        max_height: 最大高度（像素）
        quality: 起始編碼品質 (0-1]
        max_file_size_mb: 壓縮前允許的最大檔案大小 (MB)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_width: int = Field(default=1200, gt=0)
    max_height: int = Field(default=1600, gt=0)
    quality: float = Field(default=0.85, gt=0.0, le=1.0)
    max_file_size_mb: float = Field(default=10.0, gt=0.0)

    @classmethod
    def merged(cls, overrides: Mapping[str, object] | None = None) -> "ProcessingOptions":
        """
        將覆寫值逐欄合併到預設值上

        Args:
            overrides: 欄位覆寫，值為 None 代表保留預設

        Returns:
            合併後的設定

        Raises:
            ValueError: 出現未知欄位時
        """
        if not overrides:
            return cls()
        unknown = set(overrides) - set(cls.model_fields)
        if unknown:
            msg = f"Unknown processing options: {', '.join(sorted(unknown))}"
            raise ValueError(msg)
        values = {key: value for key, value in overrides.items() if value is not None}
        return cls.model_validate(values)


def webp_filename(original_name: str) -> str:
    """以 .webp 取代原始副檔名"""
    return _EXTENSION_PATTERN.sub("", original_name) + OUTPUT_EXTENSION


class UploadPayload(BaseModel):
    """
    上傳協作者所需的資料

    Attributes:
        filename: 以 .webp 結尾的檔名
        file_ext: 副檔名
        content_type: 上傳時使用的 Content-Type
        data: 檔案內容
    """

    model_config = ConfigDict(frozen=True)

    filename: str
    file_ext: str = OUTPUT_EXTENSION
    content_type: str = OUTPUT_MIME_TYPE
    data: bytes


class EncodedImage(BaseModel):
    """
    編碼結果

    width/height 永遠等於實際寫入緩衝區的像素尺寸

    Attributes:
        data: 壓縮後位元組
        mime_type: 輸出 MIME 類型
        width: 最終寬度
        height: 最終高度
        quality: 被採用的編碼品質
        attempts: 編碼嘗試次數
    """

    model_config = ConfigDict(frozen=True)

    data: bytes
    mime_type: str = OUTPUT_MIME_TYPE
    width: int = Field(gt=0)
    height: int = Field(gt=0)
    quality: float = Field(gt=0.0, le=1.0)
    attempts: int = Field(ge=1)

    @property
    def size(self) -> int:
        """位元組長度"""
        return len(self.data)

    @property
    def dimensions(self) -> Dimensions:
        """最終尺寸"""
        return Dimensions(self.width, self.height)

    def to_upload(self, original_name: str) -> UploadPayload:
        """建立上傳用資料"""
        return UploadPayload(filename=webp_filename(original_name), data=self.data)


class BatchResult(BaseModel):
    """
    批次處理結果

    Attributes:
        total: 總圖片數
        success: 成功數
        failed: 失敗數
        results: 每張圖片的結果（失敗為 None），順序與輸入相同
        errors: 每張圖片的錯誤訊息（成功為 None）
    """

    model_config = ConfigDict(frozen=True)

    total: int = Field(ge=0)
    success: int = Field(ge=0)
    failed: int = Field(ge=0)
    results: tuple[EncodedImage | None, ...] = ()
    errors: tuple[str | None, ...] = ()

    @property
    def success_rate(self) -> float:
        """成功率"""
        return self.success / self.total if self.total > 0 else 0.0

    @property
    def is_complete_success(self) -> bool:
        """是否全部成功"""
        return self.failed == 0
