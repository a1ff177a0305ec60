from __future__ import annotations

import math
from typing import Optional

from posezones.pose.types import PoseFrame

MIN_EYE_CONFIDENCE = 0.5


def eye_pixel_distance(pose: Optional[PoseFrame], min_confidence: float = MIN_EYE_CONFIDENCE) -> Optional[float]:
	"""
	Horizontal pixel distance between the eyes, or None if either eye is missing
	or below `min_confidence`.

	Only the x axis is used; vertical head tilt shortens nothing here, which is a
	known approximation (a tilted head reads as a slightly closer face).
	"""
	if pose is None:
		return None
	left = pose.get("leftEye")
	right = pose.get("rightEye")
	if left is None or right is None:
		return None
	if float(left.score) < min_confidence or float(right.score) < min_confidence:
		return None
	return abs(float(left.x_px) - float(right.x_px))


def cm_per_pixel(
	pose: Optional[PoseFrame],
	known_eye_distance_cm: float,
	min_confidence: float = MIN_EYE_CONFIDENCE,
) -> Optional[float]:
	"""
	Centimeters represented by one pixel for the current frame.

	Returns None ("calibration unavailable") rather than a stale or zero value;
	callers skip zone mapping for this frame.
	"""
	dist = eye_pixel_distance(pose, min_confidence)
	if dist is None or dist <= 0.0:
		return None
	ratio = float(known_eye_distance_cm) / dist
	if not math.isfinite(ratio) or ratio <= 0.0:
		return None
	return ratio
