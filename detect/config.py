from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

HsvRange = Tuple[Tuple[int, int, int], Tuple[int, int, int]]

# Red leather ball (hue wraps at 180) and white ball.
DEFAULT_HSV_RANGES: Tuple[HsvRange, ...] = (
    ((0, 120, 70), (10, 255, 255)),
    ((170, 120, 70), (180, 255, 255)),
    ((0, 0, 200), (180, 40, 255)),
)


@dataclass(frozen=True)
class FilterConfig:
    min_area: int = 12
    max_area: Optional[int] = 900
    min_circularity: float = 0.55
    max_elongation: float = 2.5


@dataclass(frozen=True)
class DetectorConfig:
    hsv_ranges: Tuple[HsvRange, ...] = DEFAULT_HSV_RANGES
    morph_kernel_px: int = 3
    ambiguity_ratio: float = 0.8
    runtime_budget_ms: float = 8.0
    filters: FilterConfig = field(default_factory=FilterConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DetectorConfig":
        filters = FilterConfig(
            min_area=int(data.get("min_area", FilterConfig.min_area)),
            max_area=data.get("max_area", FilterConfig.max_area),
            min_circularity=float(data.get("min_circularity", FilterConfig.min_circularity)),
            max_elongation=float(data.get("max_elongation", FilterConfig.max_elongation)),
        )
        hsv_ranges = DEFAULT_HSV_RANGES
        if data.get("hsv_ranges"):
            hsv_ranges = tuple(
                (tuple(int(v) for v in low), tuple(int(v) for v in high))
                for low, high in data["hsv_ranges"]
            )
        return cls(
            hsv_ranges=hsv_ranges,
            ambiguity_ratio=float(data.get("ambiguity_ratio", cls.ambiguity_ratio)),
            filters=filters,
        )
