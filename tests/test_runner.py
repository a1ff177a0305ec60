from posezones.config import MotionConfig
from posezones.engine import ZoneEngine
from posezones.pose.base import PoseProvider
from posezones.pose.types import PoseFrame
from posezones.runner import ZoneRunner
from posezones.video_source import FrameSource
from posezones.zones import ZoneRegistry

from conftest import make_pose, solid_frame


class ListSource(FrameSource):
	def __init__(self, frames):
		self.frames = list(frames)
		self.started = self.stopped = False

	def name(self):
		return "list"

	def start(self):
		self.started = True

	def stop(self):
		self.stopped = True

	def read(self):
		return self.frames.pop(0) if self.frames else None

	def get_status(self):
		return {"name": self.name(), "remaining": len(self.frames)}


class FixedPose(PoseProvider):
	def __init__(self, pose):
		self.pose = pose
		self.closed = False

	def name(self):
		return "fixed"

	def infer_rgb(self, rgb, t_video=None):
		return self.pose

	def close(self):
		self.closed = True


def make_runner(frames, pose, results):
	reg = ZoneRegistry()
	reg.add(relative_to="leftEye", offset_x=0, offset_y=0, width=1, height=1)
	engine = ZoneEngine(reg, MotionConfig(motion_threshold=0.1, motion_count_threshold=1))
	return ZoneRunner(engine, ListSource(frames), FixedPose(pose), on_result=results.append)


def test_step_runs_one_tick_per_frame():
	results = []
	pose = make_pose(leftEye=(10, 10, 0.9), rightEye=(43, 10, 0.9))
	runner = make_runner([solid_frame(0), solid_frame(255)], pose, results)
	assert runner.step() is not None
	second = runner.step()
	assert runner.step() is None
	assert [r.frame_index for r in results] == [1, 2]
	assert [(e.kind, e.value) for e in second.events] == [("state", 1.0), ("intensity", 1.0)]


def test_empty_pose_counts_as_no_detection():
	results = []
	runner = make_runner([solid_frame(0)], PoseFrame(backend="fixed", width=64, height=48), results)
	runner.step()
	assert results[0].cm_per_pixel is None
	assert runner.engine.last_pose is None


def test_status_before_start():
	runner = make_runner([], make_pose(), [])
	status = runner.get_status()
	assert status["running"] is False
	assert status["fps"] == 0.0
	assert status["pose"] == "fixed"
