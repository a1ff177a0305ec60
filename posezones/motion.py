from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from posezones.zones import PixelRect


@dataclass(frozen=True)
class MotionSample:
	motion_count: int = 0
	motion_ratio: float = 0.0


def _as_rgb(frame) -> np.ndarray:
	arr = np.asarray(frame)
	if arr.ndim != 3 or arr.shape[2] < 3:
		raise ValueError(f"expected an HxWx3 or HxWx4 frame, got shape {arr.shape}")
	# Alpha (if any) never takes part in the difference.
	return arr[:, :, :3]


def clip_rect(rect: PixelRect, width: int, height: int) -> Optional[Tuple[int, int, int, int]]:
	"""Clip to the frame; returns (x0, y0, x1, y1) or None when nothing is left."""
	x0 = max(0, rect.x)
	y0 = max(0, rect.y)
	x1 = min(width, rect.x + max(0, rect.w))
	y1 = min(height, rect.y + max(0, rect.h))
	if x1 <= x0 or y1 <= y0:
		return None
	return x0, y0, x1, y1


class MotionEstimator:
	"""
	Frame-differencing motion counter for a set of pixel rectangles.

	Two preallocated int16 buffers hold the previous and current frame; after
	every zone has been scanned against the previous frame the roles swap, so
	overlapping zones all see the same reference and nothing is allocated per
	frame for the frames themselves. The first frame (and the first frame
	after a resolution change) only seeds the reference and reports no motion.
	"""

	def __init__(self, motion_threshold: float = 0.3) -> None:
		self.motion_threshold = float(motion_threshold)
		self._buffers: Optional[Tuple[np.ndarray, np.ndarray]] = None
		self._prev = 0

	@property
	def threshold_amount(self) -> float:
		return self.motion_threshold * 255 * 3

	@property
	def seeded(self) -> bool:
		return self._buffers is not None

	def process(self, frame, rects: Sequence[Optional[PixelRect]]) -> List[MotionSample]:
		rgb = _as_rgb(frame)
		if self._buffers is None or self._buffers[0].shape != rgb.shape:
			self._buffers = (np.empty(rgb.shape, dtype=np.int16), np.empty(rgb.shape, dtype=np.int16))
			self._prev = 0
			np.copyto(self._buffers[self._prev], rgb)
			return [MotionSample() for _ in rects]

		prev = self._buffers[self._prev]
		cur = self._buffers[1 - self._prev]
		np.copyto(cur, rgb)

		height, width = int(cur.shape[0]), int(cur.shape[1])
		amount = self.threshold_amount
		out: List[MotionSample] = []
		for rect in rects:
			out.append(self._scan(prev, cur, rect, width, height, amount))

		# Current frame becomes the reference for the next call.
		self._prev = 1 - self._prev
		return out

	@staticmethod
	def _scan(prev: np.ndarray, cur: np.ndarray, rect: Optional[PixelRect], width: int, height: int, amount: float) -> MotionSample:
		if rect is None:
			return MotionSample()
		area = rect.area
		if area == 0:
			return MotionSample()
		clipped = clip_rect(rect, width, height)
		if clipped is None:
			return MotionSample()
		x0, y0, x1, y1 = clipped
		diff = np.abs(cur[y0:y1, x0:x1] - prev[y0:y1, x0:x1]).sum(axis=2)
		count = int(np.count_nonzero(diff > amount))
		return MotionSample(motion_count=count, motion_ratio=count / area)
