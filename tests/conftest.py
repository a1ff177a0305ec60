from typing import List, Tuple

import numpy as np
import pytest

from posezones.pose.types import Keypoint, PoseFrame
from posezones.sinks.base import NotificationSink


def make_pose(width: int = 640, height: int = 480, **kps: Tuple[float, float, float]) -> PoseFrame:
	"""make_pose(leftEye=(x, y, score), ...)"""
	keypoints = {name: Keypoint(name=name, x_px=float(x), y_px=float(y), score=float(s)) for name, (x, y, s) in kps.items()}
	return PoseFrame(backend="test", width=width, height=height, keypoints=keypoints)


def solid_frame(value: int, width: int = 64, height: int = 48, channels: int = 3) -> np.ndarray:
	return np.full((height, width, channels), value, dtype=np.uint8)


class RecordingSink(NotificationSink):
	def __init__(self, open_: bool = True) -> None:
		self.open_ = open_
		self.states: List[Tuple[int, bool]] = []
		self.intensities: List[Tuple[int, float]] = []
		self.closed = False

	def name(self) -> str:
		return "recording"

	def is_open(self) -> bool:
		return self.open_

	def zone_state(self, index: int, is_on: bool) -> None:
		self.states.append((index, is_on))

	def zone_intensity(self, index: int, ratio: float) -> None:
		self.intensities.append((index, ratio))

	def close(self) -> None:
		self.closed = True


@pytest.fixture
def sink() -> RecordingSink:
	return RecordingSink()
