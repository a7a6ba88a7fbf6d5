"""
Overview coordinate translation.

CS2 coordinate system:
- X increases going East
- Y increases going North

Overview coordinate system:
- X increases going right (pixel columns)
- Y increases going down (pixel rows)

Transformation:
    translate:        (x - pos_x, pos_y - y)
    translate_scaled: translate, then divide by scale
"""

from __future__ import annotations

from dataclasses import dataclass

from csoverview.map_data import MapMetadata, get_map_metadata


@dataclass(frozen=True)
class CoordinateTranslator:
    """World to overview coordinates for one map. Stateless and thread-safe."""

    origin_x: float
    origin_y: float
    scale: float = 1.0

    @classmethod
    def for_map(cls, map_name: str) -> CoordinateTranslator:
        return cls.from_metadata(get_map_metadata(map_name))

    @classmethod
    def from_metadata(cls, metadata: MapMetadata) -> CoordinateTranslator:
        return cls(origin_x=metadata.pos_x, origin_y=metadata.pos_y, scale=metadata.scale)

    def translate(self, x: float, y: float) -> tuple[float, float]:
        """Translate world coordinates to (0, 0)-relative coordinates, Y pointing down."""
        return x - self.origin_x, self.origin_y - y

    def translate_scaled(self, x: float, y: float) -> tuple[float, float]:
        """Translate and scale world coordinates to overview pixel coordinates."""
        tx, ty = self.translate(x, y)
        return tx / self.scale, ty / self.scale

    def untranslate_scaled(self, px: float, py: float) -> tuple[float, float]:
        """Inverse of ``translate_scaled``: overview pixels back to world coordinates."""
        return px * self.scale + self.origin_x, self.origin_y - py * self.scale
