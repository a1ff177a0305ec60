from __future__ import annotations

import logging
import math
import threading
from typing import Any, Dict, List, Optional

import mido

from posezones.config import MidiConfig
from posezones.sinks.base import NotificationSink

logger = logging.getLogger(__name__)


def _clamp7(v: int) -> int:
	return min(127, max(0, int(v)))


class MidiSink(NotificationSink):
	"""
	Sends zone events to a MIDI output:
	- on/off edge: note_on / note_off at pitch `note_base + index`
	- intensity: control_change at controller `cc_base + index`, value round(ratio*127)

	Port selection: exact name, then substring match, then the first available
	output. With no ports the sink stays closed and events are dropped.
	"""

	def __init__(
		self,
		output: str = "",
		channel: int = 0,
		note_base: int = 36,
		cc_base: int = 20,
		velocity: int = 64,
		port: Optional[Any] = None,
	) -> None:
		self.port_name = output
		self.channel = int(channel)
		self.note_base = int(note_base)
		self.cc_base = int(cc_base)
		self.velocity = _clamp7(velocity)
		self._port = port
		self._lock = threading.Lock()
		self._last_error: Optional[str] = None

	@classmethod
	def from_config(cls, cfg: MidiConfig) -> "MidiSink":
		return cls(
			output=cfg.output,
			channel=cfg.channel,
			note_base=cfg.note_base,
			cc_base=cfg.cc_base,
			velocity=cfg.velocity,
		)

	@staticmethod
	def get_available_ports() -> List[str]:
		try:
			return list(mido.get_output_names())
		except Exception as e:
			# No backend (e.g. python-rtmidi missing) means no ports.
			logger.debug("[MIDI] listing outputs failed: %r", e)
			return []

	def open(self) -> bool:
		with self._lock:
			if self._port is not None:
				return True
			outputs = self.get_available_ports()
			target = next((n for n in outputs if n == self.port_name), None)
			if not target and self.port_name:
				target = next((n for n in outputs if self.port_name in n), None)
			if not target and outputs:
				target = outputs[0]
			if not target:
				logger.warning("[MIDI] No output ports; MIDI notifications disabled")
				return False
			try:
				self._port = mido.open_output(target)
			except OSError as e:
				self._last_error = repr(e)
				logger.warning("[MIDI] Could not open %r: %r", target, e)
				return False
			self.port_name = target
		logger.info("[MIDI] Sending to %s (channel %d)", target, self.channel + 1)
		return True

	def name(self) -> str:
		return "midi"

	def is_open(self) -> bool:
		return self._port is not None

	def _send(self, msg: "mido.Message") -> None:
		with self._lock:
			if self._port is None:
				return
			try:
				self._port.send(msg)
			except (OSError, ValueError) as e:
				self._last_error = repr(e)
				logger.debug("[MIDI] send failed: %r", e)

	def zone_state(self, index: int, is_on: bool) -> None:
		note = self.note_base + int(index)
		if not 0 <= note <= 127:
			return
		if is_on:
			self._send(mido.Message("note_on", note=note, velocity=self.velocity, channel=self.channel))
		else:
			self._send(mido.Message("note_off", note=note, velocity=0, channel=self.channel))

	def zone_intensity(self, index: int, ratio: float) -> None:
		control = self.cc_base + int(index)
		if not 0 <= control <= 127:
			return
		value = _clamp7(math.floor(float(ratio) * 127 + 0.5))
		self._send(mido.Message("control_change", control=control, value=value, channel=self.channel))

	def panic(self) -> None:
		"""All notes off on every channel."""
		for ch in range(16):
			self._send(mido.Message("control_change", channel=ch, control=123, value=0))

	def close(self) -> None:
		self.panic()
		with self._lock:
			port = self._port
			self._port = None
		if port is not None:
			try:
				port.close()
			except OSError as e:
				logger.debug("[MIDI] close failed: %r", e)

	def get_status(self) -> Dict[str, Any]:
		return {
			"name": self.name(),
			"open": self.is_open(),
			"port": self.port_name,
			"channel": self.channel,
			"error": self._last_error,
		}
