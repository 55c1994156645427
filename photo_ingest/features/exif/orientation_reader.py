"""
EXIF 方向讀取

直接走訪 JPEG 標記串流，從 APP1/EXIF 區段的 IFD0 中找出方向標籤 (0x0112)。
只需要方向這一個標籤，因此不依賴任何 EXIF 函式庫。

此模組沒有錯誤通道：任何異常（非 JPEG、截斷、越界、缺少標籤）都回退為
Orientation.NORMAL，方向判斷錯誤只影響外觀，不應中斷上傳。
"""

import logging
import struct
from pathlib import Path
from typing import Final

from photo_ingest.data_model import Orientation


logger = logging.getLogger(__name__)


# EXIF 標頭一定出現在檔案開頭附近
SCAN_LIMIT: Final[int] = 64 * 1024

SOI_MARKER: Final[int] = 0xFFD8
APP1_MARKER: Final[int] = 0xFFE1
MARKER_MASK: Final[int] = 0xFF00
EXIF_SIGNATURE: Final[int] = 0x45786966  # "Exif"
LITTLE_ENDIAN_MARK: Final[int] = 0x4949  # "II"
ORIENTATION_TAG: Final[int] = 0x0112
IFD_ENTRY_SIZE: Final[int] = 12
IFD_VALUE_OFFSET: Final[int] = 8


class _OutOfBounds(IndexError):
    """讀取超出緩衝區範圍"""


class ByteCursor:
    """
    帶邊界檢查的位元組讀取器

    所有讀取都以絕對位移進行，不複製子切片
    """

    __slots__ = ("_data",)

    def __init__(self, data: bytes) -> None:
        self._data = data

    def __len__(self) -> int:
        return len(self._data)

    def _read(self, fmt: str, offset: int) -> int:
        size = struct.calcsize(fmt)
        if offset < 0 or offset + size > len(self._data):
            raise _OutOfBounds(offset)
        return struct.unpack_from(fmt, self._data, offset)[0]

    def u16(self, offset: int, *, little: bool = False) -> int:
        """讀取 2 位元組無號整數"""
        return self._read("<H" if little else ">H", offset)

    def u32(self, offset: int, *, little: bool = False) -> int:
        """讀取 4 位元組無號整數"""
        return self._read("<I" if little else ">I", offset)


def read_orientation(data: bytes) -> Orientation:
    """
    讀取 JPEG 的 EXIF 方向

    Args:
        data: 原始檔案位元組（只檢查前 64 KiB）

    Returns:
        方向碼；找不到或無法解析時為 Orientation.NORMAL
    """
    cursor = ByteCursor(data[:SCAN_LIMIT])
    try:
        value = _scan_markers(cursor)
    except _OutOfBounds as exc:
        logger.debug("EXIF scan ran past buffer end at offset %s", exc.args[0])
        return Orientation.NORMAL

    if value is None:
        return Orientation.NORMAL
    orientation = Orientation.from_value(value)
    if orientation != value:
        logger.debug("Ignoring out-of-range orientation value %d", value)
    return orientation


def read_orientation_from_file(path: Path) -> Orientation:
    """讀取檔案開頭並解析方向"""
    with path.open("rb") as fh:
        return read_orientation(fh.read(SCAN_LIMIT))


def _scan_markers(cursor: ByteCursor) -> int | None:
    """走訪 JPEG 標記，回傳原始方向值或 None"""
    if cursor.u16(0) != SOI_MARKER:
        return None

    offset = 2
    while offset < len(cursor):
        marker = cursor.u16(offset)
        offset += 2

        if marker == APP1_MARKER:
            return _read_exif_segment(cursor, offset)
        if marker & MARKER_MASK == MARKER_MASK:
            # 區段長度包含長度欄位本身
            offset += cursor.u16(offset)
        else:
            logger.debug("Invalid JPEG marker 0x%04X at offset %d", marker, offset - 2)
            return None

    return None


def _read_exif_segment(cursor: ByteCursor, offset: int) -> int | None:
    """解析 APP1 區段，offset 指向區段長度欄位"""
    offset += 2  # 區段長度

    if cursor.u32(offset) != EXIF_SIGNATURE:
        logger.debug("APP1 segment is not EXIF")
        return None
    offset += 6  # "Exif" + 2 位元組填充

    tiff_start = offset
    little = cursor.u16(tiff_start) == LITTLE_ENDIAN_MARK
    ifd_start = tiff_start + cursor.u32(tiff_start + 4, little=little)

    entry_count = cursor.u16(ifd_start, little=little)
    entries_start = ifd_start + 2
    for index in range(entry_count):
        entry = entries_start + index * IFD_ENTRY_SIZE
        if cursor.u16(entry, little=little) == ORIENTATION_TAG:
            return cursor.u16(entry + IFD_VALUE_OFFSET, little=little)

    logger.debug("No orientation tag among %d IFD0 entries", entry_count)
    return None
