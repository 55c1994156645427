"""
方向轉換

將 EXIF 方向碼對應到 2-D 仿射轉換、輸出尺寸，以及等價的 Pillow 無損轉置操作。
八種方向集中在 ORIENTATION_TABLE 一處定義。

仿射矩陣採用畫布慣例（與 CanvasRenderingContext2D.transform 相同）：
    x' = a·x + c·y + e
    y' = b·x + d·y + f
其中 (x, y) 為方向校正前的來源座標，來源畫框為 width × height。
"""

from collections.abc import Callable
from dataclasses import dataclass

import numpy as np
from PIL import Image

from photo_ingest.data_model import Dimensions, Orientation


@dataclass(frozen=True, slots=True)
class AffineTransform:
    """
    2-D 仿射轉換

    Attributes:
        a, b, c, d: 線性部分
        e, f: 平移
    """

    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 1.0
    e: float = 0.0
    f: float = 0.0

    @classmethod
    def identity(cls) -> "AffineTransform":
        """單位轉換"""
        return cls()

    @classmethod
    def from_matrix(cls, matrix: np.ndarray) -> "AffineTransform":
        """從 3x3 齊次矩陣建立"""
        return cls(
            a=float(matrix[0, 0]),
            b=float(matrix[1, 0]),
            c=float(matrix[0, 1]),
            d=float(matrix[1, 1]),
            e=float(matrix[0, 2]),
            f=float(matrix[1, 2]),
        )

    def as_matrix(self) -> np.ndarray:
        """轉為 3x3 齊次矩陣"""
        return np.array(
            [
                [self.a, self.c, self.e],
                [self.b, self.d, self.f],
                [0.0, 0.0, 1.0],
            ]
        )

    def apply(self, x: float, y: float) -> tuple[float, float]:
        """轉換單一點"""
        return (
            self.a * x + self.c * y + self.e,
            self.b * x + self.d * y + self.f,
        )

    def compose(self, other: "AffineTransform") -> "AffineTransform":
        """先套用 self，再套用 other"""
        return AffineTransform.from_matrix(other.as_matrix() @ self.as_matrix())

    def inverse(self) -> "AffineTransform":
        """反轉換"""
        return AffineTransform.from_matrix(np.linalg.inv(self.as_matrix()))

    def is_identity(self) -> bool:
        """是否為單位轉換"""
        return bool(np.allclose(self.as_matrix(), np.eye(3)))


@dataclass(frozen=True, slots=True)
class OrientationTransform:
    """
    方向轉換結果

    Attributes:
        orientation: 實際使用的方向碼
        matrix: 套用在繪圖表面的仿射轉換
        width: 輸出寬度
        height: 輸出高度
        transpose: 等價的 Pillow 轉置操作（單位轉換時為 None）
    """

    orientation: Orientation
    matrix: AffineTransform
    width: int
    height: int
    transpose: Image.Transpose | None

    @property
    def dimensions(self) -> Dimensions:
        """輸出尺寸"""
        return Dimensions(self.width, self.height)

    def apply(self, image: Image.Image) -> Image.Image:
        """將方向轉換套用在已縮放到來源畫框的圖片上"""
        if self.transpose is None:
            return image
        return image.transpose(self.transpose)


MatrixFactory = Callable[[int, int], AffineTransform]


@dataclass(frozen=True, slots=True)
class _OrientationSpec:
    matrix: MatrixFactory
    transpose: Image.Transpose | None


ORIENTATION_TABLE: dict[Orientation, _OrientationSpec] = {
    Orientation.NORMAL: _OrientationSpec(
        lambda w, h: AffineTransform(1, 0, 0, 1, 0, 0),
        None,
    ),
    Orientation.MIRROR_HORIZONTAL: _OrientationSpec(
        lambda w, h: AffineTransform(-1, 0, 0, 1, w, 0),
        Image.Transpose.FLIP_LEFT_RIGHT,
    ),
    Orientation.ROTATE_180: _OrientationSpec(
        lambda w, h: AffineTransform(-1, 0, 0, -1, w, h),
        Image.Transpose.ROTATE_180,
    ),
    Orientation.MIRROR_VERTICAL: _OrientationSpec(
        lambda w, h: AffineTransform(1, 0, 0, -1, 0, h),
        Image.Transpose.FLIP_TOP_BOTTOM,
    ),
    Orientation.TRANSPOSE: _OrientationSpec(
        lambda w, h: AffineTransform(0, 1, 1, 0, 0, 0),
        Image.Transpose.TRANSPOSE,
    ),
    Orientation.ROTATE_90_CW: _OrientationSpec(
        lambda w, h: AffineTransform(0, 1, -1, 0, h, 0),
        Image.Transpose.ROTATE_270,
    ),
    Orientation.TRANSVERSE: _OrientationSpec(
        lambda w, h: AffineTransform(0, -1, -1, 0, h, w),
        Image.Transpose.TRANSVERSE,
    ),
    Orientation.ROTATE_90_CCW: _OrientationSpec(
        lambda w, h: AffineTransform(0, -1, 1, 0, 0, w),
        Image.Transpose.ROTATE_90,
    ),
}


def transform_for(code: int, width: int, height: int) -> OrientationTransform:
    """
    取得方向碼對應的轉換

    Args:
        code: EXIF 方向碼，未知值視為 1
        width: 方向校正前的來源寬度
        height: 方向校正前的來源高度

    Returns:
        仿射轉換、輸出尺寸與 Pillow 轉置操作
    """
    orientation = Orientation.from_value(code)
    spec = ORIENTATION_TABLE[orientation]
    out_width, out_height = (height, width) if orientation.swaps_dimensions else (width, height)
    return OrientationTransform(
        orientation=orientation,
        matrix=spec.matrix(width, height),
        width=out_width,
        height=out_height,
        transpose=spec.transpose,
    )
