import sys
import types

import numpy as np
import pytest

from posezones.config import PoseConfig
from posezones.pose.types import pose_from_mapping


def test_pose_from_mapping_accepts_score_alias_and_drops_unknown_names():
	pose = pose_from_mapping(
		{
			"leftEye": {"x": 10, "y": 20, "confidence": 0.8},
			"rightEye": {"x": 43, "y": 20, "score": 0.7},
			"tail": {"x": 1, "y": 1, "confidence": 1.0},
			"nose": "not a keypoint",
		},
		width=64,
		height=48,
		t_video=1.5,
	)
	assert sorted(pose.keypoints) == ["leftEye", "rightEye"]
	assert (pose.get("leftEye").x_px, pose.get("leftEye").score) == (10.0, 0.8)
	assert pose.get("rightEye").score == 0.7
	assert (pose.backend, pose.width, pose.height, pose.t_video) == ("external", 64, 48, 1.5)


def test_pose_from_mapping_defaults_missing_confidence_to_zero():
	pose = pose_from_mapping({"nose": {"x": 1, "y": 2}})
	assert pose.get("nose").score == 0.0
	assert pose.confident(0.5) == {}


class _Landmark:
	def __init__(self, x, y, visibility):
		self.x = x
		self.y = y
		self.visibility = visibility


class _FakePose:
	def __init__(self, **kwargs):
		self.closed = False

	def process(self, rgb):
		lms = [_Landmark(0.0, 0.0, 0.0) for _ in range(33)]
		lms[2] = _Landmark(0.25, 0.5, 0.9)  # LEFT_EYE
		lms[5] = _Landmark(0.75, 0.5, 0.8)  # RIGHT_EYE
		return types.SimpleNamespace(pose_landmarks=types.SimpleNamespace(landmark=lms))

	def close(self):
		self.closed = True


@pytest.fixture
def fake_mediapipe(monkeypatch):
	landmarks = dict(
		NOSE=0, LEFT_EYE=2, RIGHT_EYE=5, LEFT_EAR=7, RIGHT_EAR=8, LEFT_SHOULDER=11, RIGHT_SHOULDER=12,
		LEFT_ELBOW=13, RIGHT_ELBOW=14, LEFT_WRIST=15, RIGHT_WRIST=16, LEFT_HIP=23, RIGHT_HIP=24,
		LEFT_KNEE=25, RIGHT_KNEE=26, LEFT_ANKLE=27, RIGHT_ANKLE=28,
	)
	pose_mod = types.SimpleNamespace(Pose=_FakePose, PoseLandmark=types.SimpleNamespace(**landmarks))
	mp = types.ModuleType("mediapipe")
	mp.solutions = types.SimpleNamespace(pose=pose_mod)
	monkeypatch.setitem(sys.modules, "mediapipe", mp)
	return mp


def test_mediapipe_landmarks_become_pixel_keypoints(fake_mediapipe):
	from posezones.pose.mediapipe_provider import get_pose_provider

	provider = get_pose_provider(PoseConfig())
	pose = provider.infer_rgb(np.zeros((48, 64, 3), dtype=np.uint8), t_video=2.0)
	assert pose.backend == "mediapipe_pose" and pose.t_video == 2.0
	assert (pose.get("leftEye").x_px, pose.get("leftEye").y_px) == (16.0, 24.0)
	assert pose.get("rightEye").score == 0.8
	assert len(pose.keypoints) == 17
	provider.close()
