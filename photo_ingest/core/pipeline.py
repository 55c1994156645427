"""
圖片處理流程

驗證 → 解碼 → 讀取 EXIF 方向 → 規劃尺寸 → 方向轉換 → 自適應編碼

每次呼叫只處理一個檔案，不持有跨呼叫的可變狀態，可安全地並行執行
"""

import asyncio
import io
import logging
from collections.abc import Mapping

from PIL import Image, ImageSequence, UnidentifiedImageError
from pillow_heif import register_heif_opener

from photo_ingest.data_model import EncodedImage, ImageSource, ProcessingOptions
from photo_ingest.features.encoding.adaptive import AdaptiveEncoder, EncoderProtocol
from photo_ingest.features.exif.orientation_reader import read_orientation
from photo_ingest.features.geometry.planner import canvas_dimensions, plan_dimensions
from photo_ingest.features.orientation.transform import OrientationTransform, transform_for
from photo_ingest.features.validation.validator import validate_image

from .exceptions import DecodeFailureError, EncodeFailureError


logger = logging.getLogger(__name__)

# 讓 Pillow 能解碼 HEIC/HEIF
register_heif_opener()


def decode_image(source: ImageSource) -> Image.Image:
    """
    解碼來源位元組

    動畫只取第一幀，色彩模式統一為 RGB 或 RGBA

    Raises:
        DecodeFailureError: 無法辨識或解碼
    """
    try:
        with Image.open(io.BytesIO(source.data)) as opened:
            frame = next(ImageSequence.Iterator(opened))
            frame.load()
            image = _normalize_mode(frame)
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        ValueError,
    ) as exc:
        raise DecodeFailureError(str(exc)) from exc
    return image


def _normalize_mode(image: Image.Image) -> Image.Image:
    if image.mode in ("RGB", "RGBA"):
        return image.copy()
    has_alpha = image.mode in ("LA", "PA") or "transparency" in image.info
    return image.convert("RGBA" if has_alpha else "RGB")


class ImagePipeline:
    """
    單張圖片處理流程

    依賴抽象編碼器介面，測試時可注入合成編碼器
    """

    def __init__(
        self,
        options: ProcessingOptions | None = None,
        encoder: EncoderProtocol | None = None,
    ):
        """
        初始化處理流程

        Args:
            options: 處理設定（預設值見 ProcessingOptions）
            encoder: 單次編碼器（預設為 Pillow WebP）
        """
        self.options = options or ProcessingOptions()
        self._encoder = AdaptiveEncoder(encoder)

    def prepare(self, source: ImageSource) -> tuple[Image.Image, OrientationTransform]:
        """
        驗證、解碼並完成方向校正的繪製

        Returns:
            (最終畫布, 方向轉換)
        """
        validate_image(source, self.options.max_file_size_mb)

        image = decode_image(source)
        orientation = read_orientation(source.data)

        planned = plan_dimensions(
            image.width,
            image.height,
            self.options.max_width,
            self.options.max_height,
        )
        canvas = canvas_dimensions(planned, orientation)
        transform = transform_for(orientation, planned.width, planned.height)
        logger.debug(
            "%s: %dx%d, orientation %d, planned %dx%d, canvas %dx%d",
            source.name,
            image.width,
            image.height,
            orientation,
            planned.width,
            planned.height,
            canvas.width,
            canvas.height,
        )

        rendered = self._encoder.render(image, planned, transform)
        if rendered.size != (canvas.width, canvas.height):
            raise EncodeFailureError(
                f"rendered {rendered.width}x{rendered.height}, "
                f"expected {canvas.width}x{canvas.height}"
            )
        return rendered, transform

    def compress(self, source: ImageSource) -> EncodedImage:
        """
        壓縮單張圖片

        Args:
            source: 圖片來源

        Returns:
            編碼結果

        Raises:
            ValidationError: 類型、大小或格式不符
            DecodeFailureError: 來源無法解碼
            EncodeFailureError: 編碼器沒有任何輸出，或畫布尺寸不符
        """
        rendered, _ = self.prepare(source)
        result = self._encoder.encode(rendered, self.options.quality)
        self._log_result(source, result)
        return result

    async def compress_async(self, source: ImageSource) -> EncodedImage:
        """compress() 的非同步版本，解碼與繪製在執行緒中進行，編碼嘗試依序等待"""
        rendered, _ = await asyncio.to_thread(self.prepare, source)
        result = await self._encoder.encode_async(rendered, self.options.quality)
        self._log_result(source, result)
        return result

    @staticmethod
    def _log_result(source: ImageSource, result: EncodedImage) -> None:
        logger.info(
            "Compressed %s: %d -> %d bytes, %dx%d, quality %.2f (%d attempts)",
            source.name,
            source.size,
            result.size,
            result.width,
            result.height,
            result.quality,
            result.attempts,
        )


def compress_image(
    source: ImageSource,
    options: Mapping[str, object] | ProcessingOptions | None = None,
    **overrides: object,
) -> EncodedImage:
    """
    以預設值合併覆寫設定後壓縮圖片

    Args:
        source: 圖片來源
        options: 完整設定或欄位覆寫
        **overrides: 額外的欄位覆寫

    Returns:
        編碼結果
    """
    if isinstance(options, ProcessingOptions):
        options = options.model_dump()
    merged = ProcessingOptions.merged({**(options or {}), **overrides})
    return ImagePipeline(merged).compress(source)
