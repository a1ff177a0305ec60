from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from pythonosc.udp_client import SimpleUDPClient

from posezones.config import OscConfig
from posezones.sinks.base import NotificationSink

logger = logging.getLogger(__name__)


class OscSink(NotificationSink):
	"""
	Sends zone events as OSC messages over UDP:

	    /ctrl zone<i> 1|0          on/off edge
	    /ctrl zone<i>-diff <ratio>  intensity while on

	UDP has no connection, so "open" means the client socket could be created.
	"""

	def __init__(self, host: str = "127.0.0.1", port: int = 6010, address: str = "/ctrl", client: Optional[Any] = None) -> None:
		self.host = host
		self.port = int(port)
		self.address = address
		self._client = client
		self._last_error: Optional[str] = None

	@classmethod
	def from_config(cls, cfg: OscConfig) -> "OscSink":
		return cls(host=cfg.host, port=cfg.port, address=cfg.address)

	def open(self) -> bool:
		if self._client is not None:
			return True
		try:
			self._client = SimpleUDPClient(self.host, self.port)
		except OSError as e:
			self._last_error = repr(e)
			logger.warning("[OSC] Could not open client for %s:%d: %r", self.host, self.port, e)
			return False
		logger.info("[OSC] Sending to %s:%d %s", self.host, self.port, self.address)
		return True

	def name(self) -> str:
		return "osc"

	def is_open(self) -> bool:
		return self._client is not None

	def _send(self, args: list) -> None:
		if self._client is None:
			return
		try:
			self._client.send_message(self.address, args)
		except OSError as e:
			# Nothing listening / network down: drop, never retry.
			self._last_error = repr(e)
			logger.debug("[OSC] send failed: %r", e)

	def zone_state(self, index: int, is_on: bool) -> None:
		self._send([f"zone{index}", 1 if is_on else 0])

	def zone_intensity(self, index: int, ratio: float) -> None:
		self._send([f"zone{index}-diff", float(ratio)])

	def close(self) -> None:
		self._client = None

	def get_status(self) -> Dict[str, Any]:
		return {
			"name": self.name(),
			"open": self.is_open(),
			"target": f"{self.host}:{self.port}",
			"address": self.address,
			"error": self._last_error,
		}
