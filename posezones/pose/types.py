from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


# Canonical keypoint names (COCO-17 body set). Zones reference these by name and
# exported zone files store them verbatim, so they must stay stable.
KEYPOINT_NAMES: Tuple[str, ...] = (
	"nose",
	"leftEye",
	"rightEye",
	"leftEar",
	"rightEar",
	"leftShoulder",
	"rightShoulder",
	"leftElbow",
	"rightElbow",
	"leftWrist",
	"rightWrist",
	"leftHip",
	"rightHip",
	"leftKnee",
	"rightKnee",
	"leftAnkle",
	"rightAnkle",
)


def is_keypoint_name(name: object) -> bool:
	return isinstance(name, str) and name in KEYPOINT_NAMES


@dataclass(frozen=True)
class Keypoint:
	"""
	A single 2D keypoint in pixel coordinates.
	"""

	name: str
	x_px: float
	y_px: float
	score: float  # confidence/visibility [0..1] best-effort


@dataclass(frozen=True)
class PoseFrame:
	"""
	Model-agnostic pose output for a single detected person in a single video frame.

	- Coordinates are in pixel space of the frame the motion estimator sees.
	- Times are optional; callers can provide t_video and/or t_host (epoch seconds).
	"""

	backend: str
	width: int
	height: int
	t_video: Optional[float] = None
	t_host: Optional[float] = None
	keypoints: Dict[str, Keypoint] = field(default_factory=dict)

	def get(self, name: str) -> Optional[Keypoint]:
		if not self.keypoints:
			return None
		return self.keypoints.get(name)

	def confident(self, min_score: float) -> Dict[str, Keypoint]:
		return {n: kp for n, kp in self.keypoints.items() if float(kp.score) >= float(min_score)}


def pose_from_mapping(
	raw: Dict[str, Dict[str, float]],
	width: int = 0,
	height: int = 0,
	backend: str = "external",
	t_video: Optional[float] = None,
) -> PoseFrame:
	"""
	Build a PoseFrame from a plain {name: {x, y, confidence}} mapping.
	Unknown names are ignored; `score` is accepted as an alias of `confidence`.
	"""
	keypoints: Dict[str, Keypoint] = {}
	for name, kp in (raw or {}).items():
		if not is_keypoint_name(name) or not isinstance(kp, dict):
			continue
		conf = kp.get("confidence", kp.get("score", 0.0))
		keypoints[name] = Keypoint(
			name=name,
			x_px=float(kp.get("x", 0.0)),
			y_px=float(kp.get("y", 0.0)),
			score=float(conf or 0.0),
		)
	return PoseFrame(backend=backend, width=int(width), height=int(height), t_video=t_video, keypoints=keypoints)
