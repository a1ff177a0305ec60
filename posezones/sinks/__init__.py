"""
Notification sinks: where zone on/off and intensity events go (OSC, MIDI).

Sinks are best-effort. A sink that is not open silently drops events.
"""

from posezones.sinks.base import MultiSink, NotificationSink

__all__ = ["MultiSink", "NotificationSink", "build_sink"]


def build_sink(cfg) -> MultiSink:
	"""
	Create and open the sinks enabled in `cfg` (an AppConfig). Sinks that fail
	to open are kept so /status can report them.
	"""
	sinks = []
	if cfg.osc.enabled:
		from posezones.sinks.osc_sink import OscSink

		osc = OscSink.from_config(cfg.osc)
		osc.open()
		sinks.append(osc)
	if cfg.midi.enabled:
		from posezones.sinks.midi_sink import MidiSink

		midi = MidiSink.from_config(cfg.midi)
		midi.open()
		sinks.append(midi)
	return MultiSink(sinks)
