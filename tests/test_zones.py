import json
import random

import pytest

from posezones.pose.types import KEYPOINT_NAMES
from posezones.zones import DataFormatError, Zone, ZoneRegistry


def test_add_fills_defaults_and_assigns_ids():
	reg = ZoneRegistry(rng=random.Random(1))
	a = reg.add(relative_to="leftEye")
	b = reg.add()
	assert (a.id, b.id) == (1, 2)
	assert (a.offset_x, a.offset_y, a.width, a.height) == (0.0, 0.0, 4.0, 4.0)
	assert b.relative_to in KEYPOINT_NAMES
	assert [z.id for z in reg] == [1, 2]


def test_add_rejects_unknown_keypoint_and_negative_size():
	reg = ZoneRegistry()
	with pytest.raises(ValueError):
		reg.add(relative_to="leftAntenna")
	with pytest.raises(ValueError):
		reg.add(relative_to="nose", width=-1)
	assert len(reg) == 0


def test_ids_are_never_reused():
	reg = ZoneRegistry()
	reg.add(relative_to="nose")
	second = reg.add(relative_to="nose")
	assert reg.remove(second.id)
	assert reg.add(relative_to="nose").id == 3


def test_remove_unknown_id_reports_not_found():
	reg = ZoneRegistry()
	reg.add(relative_to="nose")
	assert reg.remove(42) is False
	assert len(reg) == 1


def test_remove_all_returns_count():
	reg = ZoneRegistry()
	reg.add(relative_to="nose")
	reg.add(relative_to="leftWrist")
	assert reg.remove_all() == 2
	assert reg.remove_all() == 0
	assert reg.snapshot() == ()


def test_update_changes_only_given_fields():
	reg = ZoneRegistry()
	z = reg.add(relative_to="nose", offset_x=1, offset_y=2)
	updated = reg.update(z.id, offset_x=-3.5, relative_to="rightKnee")
	assert updated == Zone(id=z.id, relative_to="rightKnee", offset_x=-3.5, offset_y=2, width=4.0, height=4.0)
	assert reg.get(z.id) == updated
	with pytest.raises(KeyError):
		reg.update(99, offset_x=1)


def test_snapshot_is_not_affected_by_later_edits():
	reg = ZoneRegistry()
	reg.add(relative_to="nose")
	snap = reg.snapshot()
	reg.add(relative_to="leftEye")
	reg.remove_all()
	assert len(snap) == 1


def test_serialize_round_trip():
	zones = [
		Zone(id=3, relative_to="leftEye", offset_x=5, offset_y=-7, width=4, height=4),
		Zone(id=9, relative_to="rightWrist", offset_x=-0.1, offset_y=12.25, width=0.0, height=30.5),
	]
	reg = ZoneRegistry(zones)
	assert ZoneRegistry.deserialize(reg.serialize()) == zones


def test_serialized_records_use_export_keys():
	reg = ZoneRegistry()
	reg.add(relative_to="nose", offset_x=1, offset_y=2, width=3, height=4)
	assert json.loads(reg.serialize()) == [
		{"id": 1, "relativeTo": "nose", "offsetX": 1, "offsetY": 2, "width": 3, "height": 4, "isAbsPosition": False}
	]


def test_legacy_xy_keys_are_accepted():
	text = json.dumps([{"id": 1, "x": 5, "y": -7, "width": 4, "height": 4, "relativeTo": "leftEye"}])
	(zone,) = ZoneRegistry.deserialize(text)
	assert (zone.offset_x, zone.offset_y) == (5, -7)


def test_absolute_zones_keep_their_flag():
	text = json.dumps([{"id": 3, "x": 10, "y": 12, "width": 4, "height": 2, "relativeTo": "leftEye", "isAbsPosition": True}])
	(zone,) = ZoneRegistry.deserialize(text)
	assert zone.is_absolute is True
	assert (zone.offset_x, zone.offset_y) == (10, 12)
	assert json.loads(ZoneRegistry([zone]).serialize())[0]["isAbsPosition"] is True


@pytest.mark.parametrize(
	"payload",
	[
		"[]",
		"{}",
		"not json",
		'[{"id": 1, "relativeTo": "leftEye", "offsetX": 0, "offsetY": 0, "width": 4}]',
		'[{"id": "1", "relativeTo": "leftEye", "offsetX": 0, "offsetY": 0, "width": 4, "height": 4}]',
		'[{"id": 1, "relativeTo": "tail", "offsetX": 0, "offsetY": 0, "width": 4, "height": 4}]',
		'[{"id": 1, "relativeTo": "nose", "offsetX": "a", "offsetY": 0, "width": 4, "height": 4}]',
		'[{"id": 1, "relativeTo": "nose", "offsetX": 0, "offsetY": 0, "width": -4, "height": 4}]',
		'[{"id": 1, "relativeTo": "nose", "offsetX": 0, "offsetY": 0, "width": 4, "height": 4, "isAbsPosition": "yes"}]',
		'[{"id": 1, "relativeTo": "nose", "offsetX": 0, "offsetY": 0, "width": 4, "height": 4},'
		' {"id": 1, "relativeTo": "nose", "offsetX": 0, "offsetY": 0, "width": 4, "height": 4}]',
	],
)
def test_malformed_import_leaves_registry_untouched(payload):
	reg = ZoneRegistry()
	original = reg.add(relative_to="nose")
	with pytest.raises(DataFormatError):
		reg.import_json(payload)
	assert reg.snapshot() == (original,)


def test_import_replaces_everything_and_advances_ids():
	reg = ZoneRegistry()
	reg.add(relative_to="nose")
	text = json.dumps([{"id": 10, "relativeTo": "leftHip", "offsetX": 0, "offsetY": 0, "width": 4, "height": 4}])
	reg.import_json(text)
	assert [z.id for z in reg] == [10]
	assert reg.add(relative_to="nose").id == 11


def test_import_keeps_ids_above_previous_ones():
	reg = ZoneRegistry()
	for _ in range(5):
		reg.add(relative_to="nose")
	text = json.dumps([{"id": 2, "relativeTo": "leftHip", "offsetX": 0, "offsetY": 0, "width": 4, "height": 4}])
	reg.import_json(text)
	assert reg.add(relative_to="nose").id == 6


def test_generation_counts_whole_set_replacements():
	reg = ZoneRegistry()
	start = reg.generation
	reg.add(relative_to="nose")
	reg.remove(1)
	assert reg.generation == start
	reg.import_json(json.dumps([{"id": 1, "relativeTo": "leftHip", "offsetX": 0, "offsetY": 0, "width": 4, "height": 4}]))
	generation, zones = reg.versioned_snapshot()
	assert generation == start + 1
	assert [z.relative_to for z in zones] == ["leftHip"]


def test_failed_import_keeps_generation():
	reg = ZoneRegistry()
	reg.add(relative_to="nose")
	before = reg.generation
	with pytest.raises(DataFormatError):
		reg.import_json("[]")
	assert reg.generation == before
