"""
Pytest 配置和共用 fixtures
"""

import io
import struct
from collections.abc import Callable
from pathlib import Path

import numpy as np
import pytest
from PIL import Image, ImageDraw

from photo_ingest.data_model import ImageSource


ExifSegmentFactory = Callable[..., bytes]
JpegFactory = Callable[..., bytes]


def build_exif_segment(
    orientation: int | None,
    *,
    little_endian: bool = True,
    extra_tags: int = 0,
) -> bytes:
    """
    手工組出 APP1/EXIF 區段

    Args:
        orientation: 方向值，None 時不寫入方向標籤
        little_endian: TIFF 位元組順序
        extra_tags: 方向標籤之前額外放置的無關標籤數
    """
    order = "<" if little_endian else ">"
    header = (b"II" if little_endian else b"MM") + struct.pack(f"{order}HI", 42, 8)

    entries = []
    for index in range(extra_tags):
        # ImageWidth 等無關標籤 (type=SHORT, count=1)
        entries.append(struct.pack(f"{order}HHIHH", 0x0100 + index, 3, 1, 640, 0))
    if orientation is not None:
        entries.append(struct.pack(f"{order}HHIHH", 0x0112, 3, 1, orientation, 0))

    ifd = struct.pack(f"{order}H", len(entries)) + b"".join(entries) + struct.pack(f"{order}I", 0)
    payload = b"Exif\x00\x00" + header + ifd
    return b"\xff\xe1" + struct.pack(">H", len(payload) + 2) + payload


def insert_after_soi(jpeg: bytes, *segments: bytes) -> bytes:
    """將區段插入 SOI 標記之後"""
    assert jpeg[:2] == b"\xff\xd8"
    return jpeg[:2] + b"".join(segments) + jpeg[2:]


def make_test_image(size: tuple[int, int] = (64, 48)) -> Image.Image:
    """
    建立左紅右藍的測試圖片

    左右半邊顏色不同，方便確認旋轉方向
    """
    width, height = size
    image = Image.new("RGB", size, color=(0, 0, 255))
    draw = ImageDraw.Draw(image)
    draw.rectangle([(0, 0), (width // 2 - 1, height - 1)], fill=(255, 0, 0))
    return image


def encode(image: Image.Image, fmt: str, **params: object) -> bytes:
    """以指定格式編碼圖片"""
    buffer = io.BytesIO()
    image.save(buffer, format=fmt, **params)
    return buffer.getvalue()


@pytest.fixture
def exif_segment() -> ExifSegmentFactory:
    """APP1/EXIF 區段產生器"""
    return build_exif_segment


@pytest.fixture
def jpeg_with_orientation() -> JpegFactory:
    """產生帶有指定方向的 JPEG 位元組"""

    def _factory(
        orientation: int | None,
        size: tuple[int, int] = (64, 48),
        **segment_kwargs: object,
    ) -> bytes:
        jpeg = encode(make_test_image(size), "JPEG", quality=95)
        return insert_after_soi(jpeg, build_exif_segment(orientation, **segment_kwargs))

    return _factory


@pytest.fixture
def plain_jpeg_bytes() -> bytes:
    """沒有 EXIF 的 JPEG"""
    return encode(make_test_image(), "JPEG", quality=95)


@pytest.fixture
def png_bytes() -> bytes:
    """PNG 測試圖片"""
    return encode(make_test_image(), "PNG")


@pytest.fixture
def noisy_image() -> Image.Image:
    """難以壓縮的雜訊圖片"""
    rng = np.random.default_rng(42)
    pixels = rng.integers(0, 256, size=(600, 800, 3), dtype=np.uint8)
    return Image.fromarray(pixels, "RGB")


@pytest.fixture
def jpeg_source(jpeg_with_orientation: JpegFactory) -> Callable[..., ImageSource]:
    """建立 JPEG 圖片來源"""

    def _factory(orientation: int | None = 1, size: tuple[int, int] = (400, 300)) -> ImageSource:
        data = jpeg_with_orientation(orientation, size)
        return ImageSource(data=data, mime_type="image/jpeg", name="photo.jpg")

    return _factory


@pytest.fixture
def images_dir(tmp_path: Path) -> Path:
    """含有數張圖片與一個非圖片檔案的資料夾"""
    folder = tmp_path / "images"
    folder.mkdir()
    for index in range(3):
        make_test_image((80 + index * 10, 60)).save(folder / f"img_{index}.png")
    (folder / "readme.txt").write_text("not an image")
    return folder
