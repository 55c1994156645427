"""
自適應品質編碼測試

使用合成編碼器驗證品質搜尋行為，再以 Pillow WebP 做實際編碼
"""

import asyncio
import io

import pytest
from PIL import Image

from photo_ingest.core.exceptions import EncodeFailureError
from photo_ingest.data_model import Dimensions
from photo_ingest.features.encoding.adaptive import (
    QUALITY_FLOOR,
    TARGET_BYTES,
    AdaptiveEncoder,
    EncoderProtocol,
    PillowWebPEncoder,
)
from photo_ingest.features.orientation.transform import transform_for


KB = 1024


class SizeTableEncoder:
    """依品質回傳固定大小輸出的合成編碼器"""

    mime_type = "image/webp"

    def __init__(self, sizes: dict[float, int | None], default: int | None = None) -> None:
        self.sizes = sizes
        self.default = default
        self.calls: list[float] = []

    def encode(self, image: Image.Image, quality: float) -> bytes | None:
        self.calls.append(quality)
        size = self.sizes.get(quality, self.default)
        return None if size is None else b"\x00" * size


@pytest.fixture
def canvas() -> Image.Image:
    return Image.new("RGB", (90, 120), color=(10, 20, 30))


class TestQualitySchedule:
    """quality_schedule 測試"""

    @pytest.mark.unit
    def test_default_schedule(self) -> None:
        schedule = AdaptiveEncoder(SizeTableEncoder({})).quality_schedule(0.85)
        assert schedule == [0.85, 0.75, 0.65, 0.55, 0.45, 0.35]

    @pytest.mark.unit
    def test_includes_floor(self) -> None:
        schedule = AdaptiveEncoder(SizeTableEncoder({})).quality_schedule(0.9)
        assert schedule[-1] == QUALITY_FLOOR
        assert len(schedule) == 7

    @pytest.mark.unit
    def test_start_below_floor_tries_once(self) -> None:
        assert AdaptiveEncoder(SizeTableEncoder({})).quality_schedule(0.2) == [0.2]


class TestAdaptiveEncode:
    """encode 測試"""

    @pytest.mark.unit
    def test_synthetic_encoder_satisfies_protocol(self) -> None:
        assert isinstance(SizeTableEncoder({}), EncoderProtocol)

    @pytest.mark.unit
    def test_first_result_under_budget(self, canvas: Image.Image) -> None:
        encoder = SizeTableEncoder({0.85: 700 * KB, 0.75: 600 * KB, 0.65: 480 * KB})
        result = AdaptiveEncoder(encoder).encode(canvas, 0.85)

        assert result.size == 480 * KB
        assert result.quality == 0.65
        assert result.attempts == 3
        assert encoder.calls == [0.85, 0.75, 0.65]

    @pytest.mark.unit
    def test_budget_is_inclusive(self, canvas: Image.Image) -> None:
        encoder = SizeTableEncoder({}, default=TARGET_BYTES)
        result = AdaptiveEncoder(encoder).encode(canvas, 0.85)
        assert result.attempts == 1

    @pytest.mark.unit
    def test_over_budget_returns_floor_result(self, canvas: Image.Image) -> None:
        encoder = SizeTableEncoder({0.35: 510 * KB}, default=900 * KB)
        result = AdaptiveEncoder(encoder).encode(canvas, 0.85)

        assert result.quality == 0.35
        assert result.size == 510 * KB
        assert result.attempts == 6

    @pytest.mark.unit
    def test_keeps_last_successful_output(self, canvas: Image.Image) -> None:
        encoder = SizeTableEncoder({0.85: 900 * KB, 0.75: 800 * KB}, default=None)
        result = AdaptiveEncoder(encoder).encode(canvas, 0.85)

        assert result.quality == 0.75
        assert result.size == 800 * KB
        assert result.attempts == 6

    @pytest.mark.unit
    def test_skips_failed_attempts(self, canvas: Image.Image) -> None:
        encoder = SizeTableEncoder({0.85: None, 0.75: 100 * KB})
        result = AdaptiveEncoder(encoder).encode(canvas, 0.85)
        assert result.quality == 0.75
        assert result.attempts == 2

    @pytest.mark.unit
    def test_no_output_raises(self, canvas: Image.Image) -> None:
        encoder = SizeTableEncoder({}, default=None)
        with pytest.raises(EncodeFailureError, match="Failed to compress image"):
            AdaptiveEncoder(encoder).encode(canvas, 0.85)

    @pytest.mark.unit
    def test_dimensions_match_canvas(self, canvas: Image.Image) -> None:
        result = AdaptiveEncoder(SizeTableEncoder({}, default=10)).encode(canvas, 0.85)
        assert (result.width, result.height) == canvas.size
        assert result.mime_type == "image/webp"

    @pytest.mark.unit
    def test_async_matches_sync(self, canvas: Image.Image) -> None:
        sizes = {0.85: 700 * KB, 0.75: 600 * KB, 0.65: 480 * KB}
        sync_result = AdaptiveEncoder(SizeTableEncoder(sizes)).encode(canvas, 0.85)
        async_result = asyncio.run(
            AdaptiveEncoder(SizeTableEncoder(sizes)).encode_async(canvas, 0.85)
        )
        assert async_result == sync_result

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("sizes", "default"),
        [
            ({0.85: None, 0.75: 400 * KB}, None),
            ({}, 2048 * KB),
            ({0.45: None, 0.35: None}, 900 * KB),
        ],
    )
    def test_async_follows_same_attempts(
        self,
        canvas: Image.Image,
        sizes: dict[float, int | None],
        default: int | None,
    ) -> None:
        sync_encoder = SizeTableEncoder(sizes, default)
        async_encoder = SizeTableEncoder(sizes, default)

        sync_result = AdaptiveEncoder(sync_encoder).encode(canvas, 0.85)
        async_result = asyncio.run(AdaptiveEncoder(async_encoder).encode_async(canvas, 0.85))

        assert async_encoder.calls == sync_encoder.calls
        assert (async_result.quality, async_result.attempts) == (
            sync_result.quality,
            sync_result.attempts,
        )

    @pytest.mark.unit
    def test_async_no_output_raises(self, canvas: Image.Image) -> None:
        encoder = SizeTableEncoder({}, default=None)
        with pytest.raises(EncodeFailureError):
            asyncio.run(AdaptiveEncoder(encoder).encode_async(canvas, 0.85))
        assert len(encoder.calls) == 6


class TestRender:
    """render 測試"""

    @pytest.mark.unit
    @pytest.mark.parametrize(("code", "size"), [(1, (120, 90)), (6, (90, 120))])
    def test_render_to_canvas_size(self, code: int, size: tuple[int, int]) -> None:
        source = Image.new("RGB", (400, 300))
        planned = Dimensions(120, 90)
        transform = transform_for(code, planned.width, planned.height)

        rendered = AdaptiveEncoder(SizeTableEncoder({})).render(source, planned, transform)
        assert rendered.size == size

    @pytest.mark.unit
    def test_render_allocates_new_surface(self) -> None:
        source = Image.new("RGB", (120, 90))
        transform = transform_for(1, 120, 90)
        rendered = AdaptiveEncoder(SizeTableEncoder({})).render(
            source, Dimensions(120, 90), transform
        )
        assert rendered is not source


class TestPillowWebPEncoder:
    """PillowWebPEncoder 測試"""

    @pytest.mark.slow
    def test_produces_webp(self, canvas: Image.Image) -> None:
        data = PillowWebPEncoder().encode(canvas, 0.85)
        assert data is not None
        assert data[:4] == b"RIFF"
        assert data[8:12] == b"WEBP"

    @pytest.mark.slow
    def test_lower_quality_is_smaller(self, noisy_image: Image.Image) -> None:
        encoder = PillowWebPEncoder()
        high = encoder.encode(noisy_image, 0.95)
        low = encoder.encode(noisy_image, 0.3)
        assert high is not None and low is not None
        assert len(low) < len(high)

    @pytest.mark.slow
    def test_real_encode_dimensions(self, noisy_image: Image.Image) -> None:
        result = AdaptiveEncoder().encode(noisy_image, 0.85)
        with Image.open(io.BytesIO(result.data)) as decoded:
            assert decoded.size == (result.width, result.height) == noisy_image.size
