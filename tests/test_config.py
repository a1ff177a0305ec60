import json

from posezones.config import AppConfig, MotionConfig, load_config, parse_config, parse_motion_config


def test_missing_file_gives_defaults(tmp_path):
	assert load_config(tmp_path / "nope.json") == AppConfig()


def test_malformed_file_gives_defaults(tmp_path):
	p = tmp_path / "config.json"
	p.write_text("{not json", encoding="utf-8")
	assert load_config(p) == AppConfig()


def test_partial_file(tmp_path):
	p = tmp_path / "config.json"
	p.write_text(
		json.dumps({
			"motion": {"motion_threshold": 0.5, "motion_count_threshold": 120},
			"camera": {"enabled": "false", "index": 0},
			"osc": {"port": 9129},
			"midi": {"output": "IAC", "channel": 3},
		}),
		encoding="utf-8",
	)
	cfg = load_config(p)
	assert cfg.motion.motion_threshold == 0.5
	assert cfg.motion.motion_count_threshold == 120
	assert cfg.motion.known_eye_distance_cm == 3.3
	assert cfg.camera.enabled is False
	assert cfg.camera.index == 0
	assert cfg.osc.port == 9129 and cfg.osc.address == "/ctrl"
	assert (cfg.midi.output, cfg.midi.channel, cfg.midi.note_base) == ("IAC", 3, 36)


def test_invalid_values_fall_back():
	cfg = parse_config({
		"motion": {"motion_threshold": 7, "motion_count_threshold": -3, "known_eye_distance_cm": 0},
		"osc": {"port": 70000, "address": "ctrl"},
		"midi": {"channel": 16, "velocity": 0},
	})
	assert cfg.motion.motion_threshold == 1.0
	assert cfg.motion.motion_count_threshold == 0
	assert cfg.motion.known_eye_distance_cm == 3.3
	assert cfg.osc.port == 6010 and cfg.osc.address == "/ctrl"
	assert cfg.midi.channel == 0 and cfg.midi.velocity == 64


def test_parse_motion_config_keeps_base_for_missing_keys():
	base = MotionConfig(motion_threshold=0.4, motion_count_threshold=80)
	out = parse_motion_config({"motion_count_threshold": 10}, base=base)
	assert out == MotionConfig(motion_threshold=0.4, motion_count_threshold=10)
