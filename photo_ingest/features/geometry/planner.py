"""
目標尺寸規劃

計算保持寬高比、不放大的目標尺寸，以及套用方向後的畫布尺寸
"""

import math

from photo_ingest.data_model import Dimensions, Orientation


def round_half_up(value: float) -> int:
    """四捨五入（.5 一律進位，與 JavaScript Math.round 相同）"""
    return math.floor(value + 0.5)


def plan_dimensions(
    original_width: int,
    original_height: int,
    max_width: int,
    max_height: int,
) -> Dimensions:
    """
    計算方向校正前的目標尺寸

    先限制寬度，再以已調整過的尺寸限制高度。每一步都只會縮小，
    因此第二步不會讓寬度重新超出上限。

    Args:
        original_width: 原始寬度
        original_height: 原始高度
        max_width: 最大寬度
        max_height: 最大高度

    Returns:
        目標尺寸（寬高至少為 1）
    """
    width = original_width
    height = original_height

    if width > max_width:
        height = round_half_up(height * max_width / width)
        width = max_width

    if height > max_height:
        width = round_half_up(width * max_height / height)
        height = max_height

    # 極端長寬比時縮放結果可能四捨五入為 0
    return Dimensions(max(1, width), max(1, height))


def canvas_dimensions(planned: Dimensions, orientation: Orientation) -> Dimensions:
    """套用方向後的畫布尺寸，90 度類方向 (5-8) 需互換寬高"""
    if orientation.swaps_dimensions:
        return planned.swapped()
    return planned
