from posezones.config import AppConfig, MidiConfig, OscConfig
from posezones.sinks import MultiSink, build_sink
from posezones.sinks.midi_sink import MidiSink
from posezones.sinks.osc_sink import OscSink

from conftest import RecordingSink


class FakeOscClient:
	def __init__(self, fail=False):
		self.sent = []
		self.fail = fail

	def send_message(self, address, args):
		if self.fail:
			raise OSError("network unreachable")
		self.sent.append((address, args))


class FakeMidiPort:
	def __init__(self):
		self.sent = []
		self.closed = False

	def send(self, msg):
		self.sent.append(msg)

	def close(self):
		self.closed = True


def test_osc_messages():
	client = FakeOscClient()
	sink = OscSink(address="/ctrl", client=client)
	sink.zone_state(2, True)
	sink.zone_intensity(2, 0.25)
	sink.zone_state(2, False)
	assert client.sent == [
		("/ctrl", ["zone2", 1]),
		("/ctrl", ["zone2-diff", 0.25]),
		("/ctrl", ["zone2", 0]),
	]


def test_osc_without_client_is_closed_and_silent():
	sink = OscSink()
	assert not sink.is_open()
	sink.zone_state(0, True)


def test_osc_send_errors_are_dropped():
	sink = OscSink(client=FakeOscClient(fail=True))
	sink.zone_state(0, True)
	assert sink.get_status()["error"]


def test_midi_notes_and_cc():
	port = FakeMidiPort()
	sink = MidiSink(port=port)
	sink.zone_state(1, True)
	sink.zone_intensity(1, 0.5)
	sink.zone_state(1, False)
	on, cc, off = port.sent
	assert (on.type, on.note, on.velocity, on.channel) == ("note_on", 37, 64, 0)
	assert (cc.type, cc.control, cc.value) == ("control_change", 21, 64)
	assert (off.type, off.note) == ("note_off", 37)


def test_midi_cc_value_is_clamped_and_rounded():
	port = FakeMidiPort()
	sink = MidiSink(port=port)
	sink.zone_intensity(0, 1.0)
	sink.zone_intensity(0, 0.0)
	sink.zone_intensity(0, 0.3)
	assert [m.value for m in port.sent] == [127, 0, 38]


def test_midi_out_of_range_note_is_dropped():
	port = FakeMidiPort()
	sink = MidiSink(note_base=120, port=port)
	sink.zone_state(20, True)
	assert port.sent == []


def test_midi_close_sends_all_notes_off():
	port = FakeMidiPort()
	sink = MidiSink(port=port)
	sink.close()
	assert len(port.sent) == 16
	assert all(m.control == 123 for m in port.sent)
	assert port.closed and not sink.is_open()


def test_midi_open_without_ports(monkeypatch):
	monkeypatch.setattr(MidiSink, "get_available_ports", staticmethod(lambda: []))
	sink = MidiSink()
	assert sink.open() is False
	assert not sink.is_open()


def test_midi_open_prefers_substring_match(monkeypatch):
	import posezones.sinks.midi_sink as midi_sink

	opened = []
	monkeypatch.setattr(MidiSink, "get_available_ports", staticmethod(lambda: ["IAC Bus 1", "loopMIDI Port 2"]))
	monkeypatch.setattr(midi_sink.mido, "open_output", lambda name: opened.append(name) or FakeMidiPort())
	sink = MidiSink(output="loopMIDI")
	assert sink.open()
	assert opened == ["loopMIDI Port 2"]


def test_multi_sink_skips_closed_children():
	a, b = RecordingSink(), RecordingSink(open_=False)
	multi = MultiSink([a, b])
	multi.zone_state(0, True)
	multi.zone_intensity(0, 0.5)
	assert a.states == [(0, True)] and a.intensities == [(0, 0.5)]
	assert b.states == [] and b.intensities == []
	multi.close()
	assert a.closed and b.closed


def test_multi_sink_open_if_any_child_is():
	assert not MultiSink([]).is_open()
	assert MultiSink([RecordingSink(open_=False), RecordingSink()]).is_open()


def test_build_sink_respects_disabled_transports():
	cfg = AppConfig(osc=OscConfig(enabled=False), midi=MidiConfig(enabled=False))
	sink = build_sink(cfg)
	assert sink.sinks == []
	assert not sink.is_open()
