from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List

logger = logging.getLogger(__name__)


class NotificationSink(ABC):
	"""
	Receiver of per-zone notifications. `index` is the zone's position in the
	registry, which is what patches on the receiving side are wired to.
	"""

	@abstractmethod
	def name(self) -> str: ...

	@abstractmethod
	def is_open(self) -> bool: ...

	@abstractmethod
	def zone_state(self, index: int, is_on: bool) -> None: ...

	@abstractmethod
	def zone_intensity(self, index: int, ratio: float) -> None: ...

	def close(self) -> None:
		return None

	def get_status(self) -> Dict[str, Any]:
		return {"name": self.name(), "open": self.is_open()}


class MultiSink(NotificationSink):
	"""Fans events out to every child sink that is currently open."""

	def __init__(self, sinks: Iterable[NotificationSink] = ()) -> None:
		self._sinks: List[NotificationSink] = list(sinks)

	@property
	def sinks(self) -> List[NotificationSink]:
		return list(self._sinks)

	def name(self) -> str:
		return "multi"

	def is_open(self) -> bool:
		return any(s.is_open() for s in self._sinks)

	def zone_state(self, index: int, is_on: bool) -> None:
		for s in self._sinks:
			if not s.is_open():
				continue
			try:
				s.zone_state(index, is_on)
			except Exception as e:
				logger.debug("[Sink] %s dropped zone%d state: %r", s.name(), index, e)

	def zone_intensity(self, index: int, ratio: float) -> None:
		for s in self._sinks:
			if not s.is_open():
				continue
			try:
				s.zone_intensity(index, ratio)
			except Exception as e:
				logger.debug("[Sink] %s dropped zone%d intensity: %r", s.name(), index, e)

	def close(self) -> None:
		for s in self._sinks:
			try:
				s.close()
			except Exception as e:
				logger.warning("[Sink] %s close failed: %r", s.name(), e)

	def get_status(self) -> Dict[str, Any]:
		return {"name": self.name(), "open": self.is_open(), "sinks": [s.get_status() for s in self._sinks]}
