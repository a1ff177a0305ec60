from __future__ import annotations

import math
from typing import Dict, Optional, Sequence

from posezones.pose.types import Keypoint, PoseFrame
from posezones.zones import ABSOLUTE_PX_PER_UNIT, PixelRect, Zone, ZoneRuntimeState

MIN_ANCHOR_CONFIDENCE = 0.5
# Below this a cm/px ratio is treated as degenerate (it would blow rectangles up to infinity).
MIN_CM_PER_PIXEL = 1e-6


def _round_half_up(v: float) -> int:
	return int(math.floor(v + 0.5))


def map_zone(
	zone: Zone,
	keypoint: Optional[Keypoint],
	cm_per_pixel: Optional[float],
	min_confidence: float = MIN_ANCHOR_CONFIDENCE,
) -> Optional[PixelRect]:
	"""
	Project a zone to a pixel rectangle for this frame.

	Returns None when the zone should keep its previous rectangle: anchor missing
	or below `min_confidence`, calibration unavailable or degenerate, or a
	non-finite projection. Absolute zones need a confident anchor but no
	calibration.
	"""
	if keypoint is None or float(keypoint.score) < min_confidence:
		return None
	if zone.is_absolute:
		k = ABSOLUTE_PX_PER_UNIT
		return PixelRect(
			x=_round_half_up(zone.offset_x * k),
			y=_round_half_up(zone.offset_y * k),
			w=_round_half_up(zone.width * k),
			h=_round_half_up(zone.height * k),
		)
	if cm_per_pixel is None or not math.isfinite(cm_per_pixel) or cm_per_pixel <= MIN_CM_PER_PIXEL:
		return None

	r = float(cm_per_pixel)
	x = float(keypoint.x_px) + float(zone.offset_x) / r
	y = float(keypoint.y_px) + float(zone.offset_y) / r
	w = float(zone.width) / r
	h = float(zone.height) / r
	if not all(math.isfinite(v) for v in (x, y, w, h)):
		return None
	return PixelRect(x=_round_half_up(x), y=_round_half_up(y), w=_round_half_up(w), h=_round_half_up(h))


class CoordinateMapper:
	"""Updates the pixel rectangles held in per-zone runtime state."""

	def __init__(self, min_confidence: float = MIN_ANCHOR_CONFIDENCE) -> None:
		self.min_confidence = float(min_confidence)

	def update(
		self,
		zones: Sequence[Zone],
		pose: Optional[PoseFrame],
		cm_per_pixel: Optional[float],
		states: Dict[int, ZoneRuntimeState],
	) -> int:
		"""
		Recompute rectangles in place and return how many zones moved this frame.
		Zones that cannot be mapped keep their last rectangle (stale-but-valid).
		"""
		if pose is None:
			return 0
		updated = 0
		for zone in zones:
			rect = map_zone(zone, pose.get(zone.relative_to), cm_per_pixel, self.min_confidence)
			if rect is None:
				continue
			states.setdefault(zone.id, ZoneRuntimeState()).rect = rect
			updated += 1
		return updated
