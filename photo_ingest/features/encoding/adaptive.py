"""
自適應品質編碼

先將來源繪製到最終畫布，再從起始品質逐步降低（每次 0.1）重複編碼，
直到輸出不超過位元組預算，或品質即將低於下限 0.3 為止。
"""

import asyncio
import io
import logging
from collections.abc import Generator
from typing import Final, Protocol, runtime_checkable

from PIL import Image

from photo_ingest.core.exceptions import EncodeFailureError
from photo_ingest.data_model import OUTPUT_MIME_TYPE, Dimensions, EncodedImage
from photo_ingest.features.orientation.transform import OrientationTransform


logger = logging.getLogger(__name__)


TARGET_BYTES: Final[int] = 500 * 1024
QUALITY_STEP: Final[float] = 0.1
QUALITY_FLOOR: Final[float] = 0.3
# 避免 0.85 - 0.1 * n 的浮點誤差累積
_QUALITY_DIGITS: Final[int] = 6


@runtime_checkable
class EncoderProtocol(Protocol):
    """單次編碼器介面"""

    mime_type: str

    def encode(self, image: Image.Image, quality: float) -> bytes | None:
        """以指定品質 (0-1] 編碼，無法產生輸出時回傳 None"""
        ...


class PillowWebPEncoder:
    """使用 Pillow 輸出 WebP"""

    mime_type: str = OUTPUT_MIME_TYPE

    def __init__(self, method: int = 4) -> None:
        """
        Args:
            method: libwebp 壓縮速度/品質取捨 (0=快, 6=慢)
        """
        self.method = method

    def encode(self, image: Image.Image, quality: float) -> bytes | None:
        buffer = io.BytesIO()
        try:
            image.save(
                buffer,
                format="WEBP",
                quality=max(1, min(100, round(quality * 100))),
                method=self.method,
            )
        except (OSError, ValueError) as exc:
            logger.warning("WebP encode failed at quality %.2f: %s", quality, exc)
            return None
        data = buffer.getvalue()
        return data or None


class AdaptiveEncoder:
    """
    自適應品質編碼器

    每次呼叫都配置自己的繪圖表面，不跨呼叫重用
    """

    def __init__(
        self,
        encoder: EncoderProtocol | None = None,
        target_bytes: int = TARGET_BYTES,
        quality_step: float = QUALITY_STEP,
        quality_floor: float = QUALITY_FLOOR,
    ) -> None:
        """
        初始化編碼器

        Args:
            encoder: 單次編碼器（預設為 Pillow WebP）
            target_bytes: 位元組預算
            quality_step: 每次降低的品質
            quality_floor: 品質下限
        """
        self._encoder = encoder or PillowWebPEncoder()
        self.target_bytes = target_bytes
        self.quality_step = quality_step
        self.quality_floor = quality_floor

    @property
    def mime_type(self) -> str:
        """輸出 MIME 類型"""
        return self._encoder.mime_type

    def render(
        self,
        image: Image.Image,
        planned: Dimensions,
        transform: OrientationTransform,
    ) -> Image.Image:
        """
        將來源繪製到最終畫布

        Args:
            image: 已解碼的來源圖片
            planned: 方向校正前的目標尺寸
            transform: 方向轉換

        Returns:
            尺寸為 transform.width × transform.height 的新圖片
        """
        surface = image.resize(
            (planned.width, planned.height),
            resample=Image.Resampling.LANCZOS,
        )
        rendered = transform.apply(surface)
        logger.debug(
            "Rendered %dx%d -> %dx%d (orientation %d)",
            image.width,
            image.height,
            rendered.width,
            rendered.height,
            transform.orientation,
        )
        return rendered

    def quality_schedule(self, quality: float) -> list[float]:
        """
        列出依序嘗試的品質

        起始品質已低於下限時仍會嘗試一次
        """
        schedule = [round(quality, _QUALITY_DIGITS)]
        attempt = 1
        while True:
            next_quality = round(quality - attempt * self.quality_step, _QUALITY_DIGITS)
            if next_quality < self.quality_floor:
                break
            schedule.append(next_quality)
            attempt += 1
        return schedule

    def encode(self, image: Image.Image, quality: float) -> EncodedImage:
        """
        以遞減品質編碼已繪製的圖片

        Args:
            image: 已繪製的最終畫布
            quality: 起始品質 (0-1]

        Returns:
            第一個不超過預算的結果；全部超過時為最後一個成功的結果

        Raises:
            EncodeFailureError: 所有嘗試都沒有輸出
        """
        search = self._search(quality)
        current = next(search)
        try:
            while True:
                current = search.send(self._encoder.encode(image, current))
        except StopIteration as stop:
            best, attempts = stop.value
        return self._finish(image, best, attempts)

    async def encode_async(self, image: Image.Image, quality: float) -> EncodedImage:
        """encode() 的非同步版本，每次嘗試都在執行緒中進行並依序等待"""
        search = self._search(quality)
        current = next(search)
        try:
            while True:
                data = await asyncio.to_thread(self._encoder.encode, image, current)
                current = search.send(data)
        except StopIteration as stop:
            best, attempts = stop.value
        return self._finish(image, best, attempts)

    def _search(
        self, quality: float
    ) -> Generator[float, bytes | None, tuple[tuple[bytes, float] | None, int]]:
        """產出下一個要嘗試的品質，接收該次輸出，結束時回傳 (最佳結果, 嘗試次數)"""
        best: tuple[bytes, float] | None = None
        attempts = 0
        for current in self.quality_schedule(quality):
            attempts += 1
            data = yield current
            best, done = self._accept(data, current, best)
            if done:
                break
        return best, attempts

    def _accept(
        self,
        data: bytes | None,
        quality: float,
        best: tuple[bytes, float] | None,
    ) -> tuple[tuple[bytes, float] | None, bool]:
        """記錄一次嘗試，回傳 (目前最佳結果, 是否已達預算)"""
        if data is None:
            logger.debug("Encoder produced no output at quality %.2f", quality)
            return best, False
        logger.debug("Quality %.2f -> %d bytes", quality, len(data))
        return (data, quality), len(data) <= self.target_bytes

    def _finish(
        self,
        image: Image.Image,
        best: tuple[bytes, float] | None,
        attempts: int,
    ) -> EncodedImage:
        if best is None:
            raise EncodeFailureError
        data, quality = best
        if len(data) > self.target_bytes:
            logger.info(
                "Output still %d bytes at quality floor (budget %d), keeping it",
                len(data),
                self.target_bytes,
            )
        return EncodedImage(
            data=data,
            mime_type=self.mime_type,
            width=image.width,
            height=image.height,
            quality=quality,
            attempts=attempts,
        )
