from __future__ import annotations

import logging
import threading
import time
from collections import deque
from typing import Any, Callable, Deque, Dict, Optional

from posezones.engine import FrameResult, ZoneEngine
from posezones.pose.base import PoseProvider
from posezones.video_source import FrameSource

logger = logging.getLogger(__name__)


class ZoneRunner:
	"""
	Background capture loop: frame -> pose -> engine.tick() -> on_result.

	One thread owns the camera and the pose model, which keeps ticks strictly
	sequential. Per-frame errors are recorded and logged, and the loop keeps
	going; only stop() ends it.
	"""

	def __init__(
		self,
		engine: ZoneEngine,
		source: FrameSource,
		provider: Optional[PoseProvider] = None,
		on_result: Optional[Callable[[FrameResult], None]] = None,
		idle_sleep_s: float = 0.005,
	) -> None:
		self.engine = engine
		self.source = source
		self.provider = provider
		self.on_result = on_result
		self.idle_sleep_s = float(idle_sleep_s)

		self._lock = threading.Lock()
		self._running = False
		self._thread: Optional[threading.Thread] = None
		self._last_error: Optional[str] = None
		self._errors = 0
		# Recent frame timestamps for the rolling frame rate.
		self._frame_times: Deque[float] = deque(maxlen=60)

	def is_running(self) -> bool:
		with self._lock:
			return bool(self._running)

	def start(self) -> None:
		with self._lock:
			if self._running:
				return
			self._running = True
			self._last_error = None

		t = threading.Thread(target=self._run_loop, name="zone-runner", daemon=True)
		self._thread = t
		t.start()

	def stop(self) -> None:
		with self._lock:
			self._running = False

		t = self._thread
		if t and t.is_alive():
			t.join(timeout=3.0)
		self._thread = None

	def fps(self) -> float:
		with self._lock:
			times = list(self._frame_times)
		if len(times) < 2 or times[-1] <= times[0]:
			return 0.0
		return (len(times) - 1) / (times[-1] - times[0])

	def get_status(self) -> Dict[str, Any]:
		fps = self.fps()
		with self._lock:
			return {
				"running": bool(self._running),
				"fps": round(fps, 2),
				"frames": self.engine.frames_processed,
				"errors": self._errors,
				"error": self._last_error,
				"source": self.source.get_status(),
				"pose": self.provider.name() if self.provider else None,
			}

	def step(self) -> Optional[FrameResult]:
		"""Process a single frame if one is available."""
		frame = self.source.read()
		if frame is None:
			return None
		poses = []
		if self.provider is not None:
			pose = self.provider.infer_rgb(frame, t_video=None)
			if pose.keypoints:
				poses.append(pose)
		result = self.engine.tick(poses, frame)
		with self._lock:
			self._frame_times.append(time.monotonic())
		if self.on_result is not None:
			self.on_result(result)
		return result

	def _run_loop(self) -> None:
		try:
			self.source.start()
		except RuntimeError as e:
			with self._lock:
				self._last_error = str(e)
				self._running = False
			logger.error("[Runner] Frame source failed to start: %s", e)
			return

		logger.info("[Runner] Started (%s)", self.source.name())
		try:
			while self.is_running():
				try:
					result = self.step()
				except Exception as e:
					# A bad frame must not end the installation.
					with self._lock:
						self._errors += 1
						self._last_error = repr(e)
					logger.exception("[Runner] Frame failed")
					time.sleep(0.1)
					continue
				if result is None:
					time.sleep(self.idle_sleep_s)
		finally:
			self.source.stop()
			if self.provider is not None:
				self.provider.close()
			logger.info("[Runner] Stopped")
