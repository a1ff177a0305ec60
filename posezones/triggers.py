from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from posezones.sinks.base import NotificationSink
from posezones.zones import ZoneRuntimeState

logger = logging.getLogger(__name__)

EVENT_STATE = "state"
EVENT_INTENSITY = "intensity"


@dataclass(frozen=True)
class ZoneEvent:
	"""
	One notification for a zone. `index` is the zone's position in the registry
	(what control surfaces see); `zone_id` is its stable id.
	"""

	kind: str
	index: int
	zone_id: int
	value: float

	@property
	def is_on(self) -> Optional[bool]:
		return bool(self.value) if self.kind == EVENT_STATE else None

	def to_dict(self) -> Dict[str, Any]:
		return {"type": "zone", "kind": self.kind, "index": self.index, "zone_id": self.zone_id, "value": self.value}


class TriggerEngine:
	"""
	Idle/Triggered state machine per zone.

	A zone turns on as soon as one frame reaches `motion_count_threshold` moving
	pixels and off on the first frame below it; there is no hold time. While on,
	the motion ratio is sent every frame, including the frame it turned on.
	"""

	def __init__(self, sink: Optional[NotificationSink] = None, motion_count_threshold: int = 50) -> None:
		self.sink = sink
		self.motion_count_threshold = int(motion_count_threshold)

	def evaluate(self, index: int, zone_id: int, state: ZoneRuntimeState) -> List[ZoneEvent]:
		is_triggered = state.motion_count >= self.motion_count_threshold
		events: List[ZoneEvent] = []
		if is_triggered != state.triggered:
			events.append(ZoneEvent(EVENT_STATE, index, zone_id, 1.0 if is_triggered else 0.0))
			logger.info("[Trigger] zone %d (id %d) %s", index, zone_id, "on" if is_triggered else "off")
		if is_triggered:
			events.append(ZoneEvent(EVENT_INTENSITY, index, zone_id, float(state.motion_ratio)))
			logger.debug("[Trigger] zone %d (id %d) intensity %.3f", index, zone_id, state.motion_ratio)
		state.triggered = is_triggered
		for ev in events:
			self._dispatch(ev)
		return events

	def release(self, index: int, zone_id: int, state: ZoneRuntimeState) -> Optional[ZoneEvent]:
		"""Turn a zone off that is about to be forgotten. Idle zones send nothing."""
		if not state.triggered:
			return None
		state.triggered = False
		ev = ZoneEvent(EVENT_STATE, index, zone_id, 0.0)
		logger.info("[Trigger] zone %d (id %d) released", index, zone_id)
		self._dispatch(ev)
		return ev

	def _dispatch(self, ev: ZoneEvent) -> None:
		sink = self.sink
		if sink is None or not sink.is_open():
			return
		try:
			if ev.kind == EVENT_STATE:
				sink.zone_state(ev.index, bool(ev.value))
			else:
				sink.zone_intensity(ev.index, ev.value)
		except Exception as e:
			# Control surfaces are optional; a failing one must not stop the frame loop.
			logger.debug("[Trigger] %s dropped %s event: %r", sink.name(), ev.kind, e)
