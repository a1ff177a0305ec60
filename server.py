import argparse
import asyncio
import concurrent.futures
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app_state import AppState
from posezones import __version__
from posezones.config import AppConfig, get_config, set_config_path
from posezones.engine import FrameResult, ZoneEngine
from posezones.pose.base import PoseProvider
from posezones.runner import ZoneRunner
from posezones.sinks import build_sink
from posezones.sinks.base import NotificationSink
from posezones.video_source import FrameSource, get_frame_source
from posezones.zones import ZoneRegistry
from routers import params, status, ws, zones

logger = logging.getLogger("posezones.server")

# Starting point zone: a small square up and to the side of the left eye.
DEFAULT_ZONE = {"relative_to": "leftEye", "offset_x": 5.0, "offset_y": -7.0, "width": 4.0, "height": 4.0}


def _make_pose_provider(cfg: AppConfig) -> Optional[PoseProvider]:
	from posezones.pose.mediapipe_provider import get_pose_provider

	try:
		return get_pose_provider(cfg.pose)
	except (RuntimeError, AttributeError) as e:
		# Without a model zones never move, but motion in their last place still triggers.
		logger.error("[Pose] %s", e)
		return None


def _log_broadcast_failure(fut: concurrent.futures.Future) -> None:
	if fut.cancelled():
		return
	exc = fut.exception()
	if exc is not None:
		logger.debug("[WS] Event broadcast failed: %r", exc)


def _make_result_handler(state: AppState):
	def on_result(result: FrameResult) -> None:
		"""
		Forward zone events to WebSocket clients.
		Runs on the runner thread, so hand the coroutine over to the server loop.
		"""
		manager = state.manager
		loop = state.loop
		if not result.events or manager is None or loop is None or manager.client_count == 0:
			return
		for ev in result.events:
			try:
				fut = asyncio.run_coroutine_threadsafe(manager.broadcast_json(ev.to_dict()), loop)
			except RuntimeError:
				# Loop is closing; drop.
				return
			fut.add_done_callback(_log_broadcast_failure)

	return on_result


def create_app(
	cfg: Optional[AppConfig] = None,
	*,
	frame_source: Optional[FrameSource] = None,
	pose_provider: Optional[PoseProvider] = None,
	sink: Optional[NotificationSink] = None,
) -> FastAPI:
	"""
	Build the FastAPI app. Collaborators can be injected (tests, alternative
	cameras); anything not given is created from config at startup.
	"""

	@asynccontextmanager
	async def lifespan(app: FastAPI):
		app_cfg = cfg or get_config()
		logging.basicConfig(
			level=getattr(logging, app_cfg.logging.level, logging.INFO),
			format="%(asctime)s %(levelname)s:%(name)s:%(message)s",
		)

		state = AppState()
		state.cfg = app_cfg
		state.registry = ZoneRegistry()
		if app_cfg.zones.seed_default:
			state.registry.add(**DEFAULT_ZONE)
		state.sink = sink if sink is not None else build_sink(app_cfg)
		state.engine = ZoneEngine(state.registry, app_cfg.motion, state.sink)
		state.manager = ws.ConnectionManager()
		state.loop = asyncio.get_running_loop()

		if app_cfg.camera.enabled:
			source = frame_source or get_frame_source(app_cfg.camera)
			provider = pose_provider or _make_pose_provider(app_cfg)
			state.runner = ZoneRunner(state.engine, source, provider, on_result=_make_result_handler(state))
			state.runner.start()
		else:
			logger.info("[Server] Camera disabled; zone engine idle until frames are supplied")

		app.state.state = state
		logger.info("[Server] posezones %s ready", __version__)
		try:
			yield
		finally:
			if state.runner:
				state.runner.stop()
			if state.sink:
				state.sink.close()
			state.loop = None

	app = FastAPI(title="posezones", version=__version__, lifespan=lifespan)
	app.add_middleware(
		CORSMiddleware,
		allow_origins=["*"],
		allow_credentials=True,
		allow_methods=["*"],
		allow_headers=["*"],
	)
	app.include_router(zones.router)
	app.include_router(params.router)
	app.include_router(status.router)
	app.include_router(ws.router)
	return app


app = create_app()


def main() -> None:
	import uvicorn

	ap = argparse.ArgumentParser(description="Keypoint-anchored motion zones -> OSC/MIDI")
	ap.add_argument("--host", default="127.0.0.1")
	ap.add_argument("--port", type=int, default=8000)
	ap.add_argument("--config", default=None, help="Path to config.json")
	args = ap.parse_args()

	if args.config:
		set_config_path(args.config)
	uvicorn.run(create_app(), host=args.host, port=int(args.port))


if __name__ == "__main__":
	main()
