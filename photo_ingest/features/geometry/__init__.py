"""
尺寸規劃功能模組
"""

from photo_ingest.features.geometry.planner import canvas_dimensions, plan_dimensions


__all__ = ["canvas_dimensions", "plan_dimensions"]
