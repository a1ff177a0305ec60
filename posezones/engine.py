from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from posezones.calibration import cm_per_pixel
from posezones.config import MotionConfig
from posezones.mapper import CoordinateMapper
from posezones.motion import MotionEstimator
from posezones.pose.types import PoseFrame
from posezones.sinks.base import NotificationSink
from posezones.triggers import TriggerEngine, ZoneEvent
from posezones.zones import ZoneRegistry, ZoneRuntimeState

logger = logging.getLogger(__name__)


@dataclass
class FrameResult:
	frame_index: int
	cm_per_pixel: Optional[float]
	zones: List[Dict[str, Any]] = field(default_factory=list)
	events: List[ZoneEvent] = field(default_factory=list)


class ZoneEngine:
	"""
	Per-frame pipeline: calibration -> coordinate mapping -> motion -> triggers.

	`tick()` is serialized with a lock, so hosts may call it from any thread,
	but never two frames at once. The zone set is read once per tick from a
	registry snapshot; edits made during a tick apply from the next one.
	When the whole registry was replaced (an import), zones still on are turned
	off at the indices they had and every runtime state starts over, since
	imported zones may reuse ids.
	"""

	def __init__(self, registry: ZoneRegistry, params: Optional[MotionConfig] = None, sink: Optional[NotificationSink] = None) -> None:
		self.registry = registry
		self._params = params or MotionConfig()
		self._tick_lock = threading.Lock()
		self._states: Dict[int, ZoneRuntimeState] = {}
		self._mapper = CoordinateMapper(self._params.min_keypoint_confidence)
		self._motion = MotionEstimator(self._params.motion_threshold)
		self._triggers = TriggerEngine(sink, self._params.motion_count_threshold)
		self._frame_index = 0
		# Registry generation and zone order seen by the previous tick.
		self._generation: Optional[int] = None
		self._order: Tuple[int, ...] = ()
		self._last_pose: Optional[PoseFrame] = None
		self._last_cm_per_pixel: Optional[float] = None

	@property
	def params(self) -> MotionConfig:
		return self._params

	def set_params(self, params: MotionConfig) -> None:
		"""Swap tuning parameters; takes effect from the next tick."""
		self._params = params
		logger.info(
			"[Engine] params: eye=%.2fcm threshold=%.2f count=%d",
			params.known_eye_distance_cm,
			params.motion_threshold,
			params.motion_count_threshold,
		)

	@property
	def sink(self) -> Optional[NotificationSink]:
		return self._triggers.sink

	@property
	def last_pose(self) -> Optional[PoseFrame]:
		return self._last_pose

	@property
	def last_cm_per_pixel(self) -> Optional[float]:
		return self._last_cm_per_pixel

	@property
	def frames_processed(self) -> int:
		return self._frame_index

	def state_for(self, zone_id: int) -> Optional[ZoneRuntimeState]:
		return self._states.get(zone_id)

	def zone_states(self) -> List[Dict[str, Any]]:
		out = []
		for idx, zone in enumerate(self.registry.snapshot()):
			st = self._states.get(zone.id) or ZoneRuntimeState()
			out.append({"index": idx, **zone.to_dict(), **st.to_dict()})
		return out

	def tick(self, poses: Sequence[PoseFrame], frame) -> FrameResult:
		"""
		Process one video frame. `poses` holds zero or more detections for this
		frame; only the first one anchors zones.
		"""
		with self._tick_lock:
			params = self._params
			self._mapper.min_confidence = params.min_keypoint_confidence
			self._motion.motion_threshold = params.motion_threshold
			self._triggers.motion_count_threshold = params.motion_count_threshold

			events: List[ZoneEvent] = []
			generation, zones = self.registry.versioned_snapshot()
			if self._generation is not None and generation != self._generation:
				events.extend(self._release_all())
			self._generation = generation
			self._order = tuple(z.id for z in zones)

			live_ids = set(self._order)
			for zone_id in [k for k in self._states if k not in live_ids]:
				del self._states[zone_id]
			for zone in zones:
				self._states.setdefault(zone.id, ZoneRuntimeState())

			pose = poses[0] if poses else None
			ratio = cm_per_pixel(pose, params.known_eye_distance_cm, params.min_keypoint_confidence) if pose else None
			self._mapper.update(zones, pose, ratio, self._states)

			samples = self._motion.process(frame, [self._states[z.id].rect for z in zones])

			for idx, (zone, sample) in enumerate(zip(zones, samples)):
				st = self._states[zone.id]
				st.motion_count = sample.motion_count
				st.motion_ratio = sample.motion_ratio
				events.extend(self._triggers.evaluate(idx, zone.id, st))

			self._frame_index += 1
			self._last_pose = pose
			self._last_cm_per_pixel = ratio
			return FrameResult(
				frame_index=self._frame_index,
				cm_per_pixel=ratio,
				zones=[{"index": i, "id": z.id, **self._states[z.id].to_dict()} for i, z in enumerate(zones)],
				events=events,
			)

	def _release_all(self) -> List[ZoneEvent]:
		released = []
		for idx, zone_id in enumerate(self._order):
			st = self._states.get(zone_id)
			ev = self._triggers.release(idx, zone_id, st) if st is not None else None
			if ev is not None:
				released.append(ev)
		self._states.clear()
		logger.info("[Engine] Zone set replaced; runtime state cleared")
		return released
