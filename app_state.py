"""
Explicit app state – single source of truth for runtime lifecycle.
Created in lifespan, attached to app.state.state; injected into routes via Depends(get_state).
"""
from typing import Any, Optional

from posezones.config import AppConfig
from posezones.engine import ZoneEngine
from posezones.runner import ZoneRunner
from posezones.sinks.base import NotificationSink
from posezones.zones import ZoneRegistry


class AppState:
	"""
	Holds all runtime state for the app. Replaces module-level globals.
	Populated in server lifespan; the runner thread and routes receive this instance.
	"""
	cfg: Optional[AppConfig] = None

	# Zone core (set in lifespan)
	registry: Optional[ZoneRegistry] = None
	engine: Optional[ZoneEngine] = None
	sink: Optional[NotificationSink] = None

	# Capture loop; None when the camera is disabled in config
	runner: Optional[ZoneRunner] = None

	# WebSocket manager and the event loop it lives on (runner thread posts into it)
	manager: Any = None
	loop: Any = None
