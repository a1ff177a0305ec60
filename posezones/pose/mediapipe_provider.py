from __future__ import annotations

import logging
from typing import Optional

from posezones.config import PoseConfig
from posezones.pose.base import PoseProvider
from posezones.pose.types import PoseFrame, pose_from_mapping

logger = logging.getLogger(__name__)


# Canonical name -> MediaPipe PoseLandmark attribute.
_LANDMARKS = {
	"nose": "NOSE",
	"leftEye": "LEFT_EYE",
	"rightEye": "RIGHT_EYE",
	"leftEar": "LEFT_EAR",
	"rightEar": "RIGHT_EAR",
	"leftShoulder": "LEFT_SHOULDER",
	"rightShoulder": "RIGHT_SHOULDER",
	"leftElbow": "LEFT_ELBOW",
	"rightElbow": "RIGHT_ELBOW",
	"leftWrist": "LEFT_WRIST",
	"rightWrist": "RIGHT_WRIST",
	"leftHip": "LEFT_HIP",
	"rightHip": "RIGHT_HIP",
	"leftKnee": "LEFT_KNEE",
	"rightKnee": "RIGHT_KNEE",
	"leftAnkle": "LEFT_ANKLE",
	"rightAnkle": "RIGHT_ANKLE",
}


class MediaPipePoseProvider(PoseProvider):
	"""
	MediaPipe Pose provider that outputs the canonical 17-keypoint set.

	Notes:
	- MediaPipe uses normalized coordinates; we convert to pixel space.
	- `visibility` is used as score (best-effort).
	- MediaPipe tracks a single person, so at most one PoseFrame per image.
	"""

	def __init__(
		self,
		model_complexity: int = 1,
		min_detection_confidence: float = 0.5,
		min_tracking_confidence: float = 0.5,
	) -> None:
		try:
			import mediapipe as mp  # type: ignore
		except ImportError as e:
			raise RuntimeError(
				"MediaPipe is not installed. Install capture deps with: pip install -e .[capture]"
			) from e

		self._mp = mp
		self._pose = mp.solutions.pose.Pose(
			static_image_mode=False,
			model_complexity=int(model_complexity),
			enable_segmentation=False,
			smooth_landmarks=True,
			min_detection_confidence=float(min_detection_confidence),
			min_tracking_confidence=float(min_tracking_confidence),
		)

	@classmethod
	def from_config(cls, cfg: PoseConfig) -> "MediaPipePoseProvider":
		return cls(
			model_complexity=cfg.model_complexity,
			min_detection_confidence=cfg.min_detection_confidence,
			min_tracking_confidence=cfg.min_tracking_confidence,
		)

	def name(self) -> str:
		return "mediapipe_pose"

	def infer_rgb(self, rgb, t_video: Optional[float] = None) -> PoseFrame:
		# rgb: HxWx3
		h, w = int(rgb.shape[0]), int(rgb.shape[1])
		res = self._pose.process(rgb)
		if not res or not getattr(res, "pose_landmarks", None):
			return PoseFrame(backend=self.name(), width=w, height=h, t_video=t_video)

		lm = res.pose_landmarks.landmark
		PL = self._mp.solutions.pose.PoseLandmark
		raw = {}
		for name, attr in _LANDMARKS.items():
			try:
				p = lm[int(getattr(PL, attr))]
			except (AttributeError, IndexError):
				continue
			raw[name] = {
				"x": float(p.x) * float(w),
				"y": float(p.y) * float(h),
				"confidence": float(getattr(p, "visibility", 0.0) or 0.0),
			}
		return pose_from_mapping(raw, width=w, height=h, backend=self.name(), t_video=t_video)

	def close(self) -> None:
		try:
			if self._pose:
				self._pose.close()
		except Exception as e:
			logger.debug("[Pose] close failed: %r", e)
		self._pose = None


def get_pose_provider(cfg: PoseConfig) -> PoseProvider:
	backend = (cfg.backend or "mediapipe").strip().lower()
	if backend not in ("mediapipe", "mp"):
		logger.warning("[Pose] Unknown backend %r; falling back to mediapipe", backend)
	return MediaPipePoseProvider.from_config(cfg)
