from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from posezones.config import CameraConfig

logger = logging.getLogger(__name__)


class FrameSource(ABC):
	"""
	Camera adapter. `read()` returns the next RGB frame (H,W,3 uint8) or None
	when no frame is available yet.
	"""

	@abstractmethod
	def name(self) -> str: ...

	@abstractmethod
	def start(self) -> None: ...

	@abstractmethod
	def stop(self) -> None: ...

	@abstractmethod
	def read(self): ...

	@abstractmethod
	def get_status(self) -> Dict[str, Any]: ...


class OpenCVFrameSource(FrameSource):
	"""
	cv2.VideoCapture backed source.

	Notes:
	- OpenCV delivers BGR; frames are converted to RGB so pose models and the
	  motion estimator see the same channel order.
	- `opencv-python` is an optional dependency (pip install -e .[capture]).
	"""

	def __init__(self, index: int = 0, width: int = 640, height: int = 480) -> None:
		self._lock = threading.Lock()
		self._index = int(index)
		self._width = int(width)
		self._height = int(height)
		self._cap = None
		self._cv2 = None
		self._last_error: Optional[str] = None
		self._frames = 0

	@classmethod
	def from_config(cls, cfg: CameraConfig) -> "OpenCVFrameSource":
		return cls(index=cfg.index, width=cfg.width, height=cfg.height)

	def name(self) -> str:
		return f"opencv:{self._index}"

	def start(self) -> None:
		with self._lock:
			if self._cap is not None:
				return
			try:
				import cv2  # type: ignore
			except ImportError as e:
				self._last_error = f"cv2 import failed: {e!r}"
				raise RuntimeError(
					"OpenCV is not installed. Install capture deps with: pip install -e .[capture]"
				) from e
			cap = cv2.VideoCapture(self._index)
			if not cap.isOpened():
				self._last_error = f"camera {self._index} could not be opened"
				cap.release()
				raise RuntimeError(self._last_error)
			cap.set(cv2.CAP_PROP_FRAME_WIDTH, self._width)
			cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self._height)
			self._cv2 = cv2
			self._cap = cap
			self._last_error = None
		logger.info("[Camera] Opened camera %d at %dx%d", self._index, self._width, self._height)

	def stop(self) -> None:
		with self._lock:
			cap = self._cap
			self._cap = None
		if cap is not None:
			cap.release()
			logger.info("[Camera] Released camera %d", self._index)

	def read(self):
		with self._lock:
			cap = self._cap
			cv2 = self._cv2
		if cap is None or cv2 is None:
			return None
		ok, bgr = cap.read()
		if not ok or bgr is None:
			return None
		self._frames += 1
		return cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)

	def get_status(self) -> Dict[str, Any]:
		with self._lock:
			return {
				"name": self.name(),
				"running": self._cap is not None,
				"frames": self._frames,
				"size": [self._width, self._height],
				"error": self._last_error,
			}


def get_frame_source(cfg: CameraConfig) -> FrameSource:
	return OpenCVFrameSource.from_config(cfg)
