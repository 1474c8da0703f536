import pytest

import hexpattern.constants
import hexpattern.segments


def test_create_segment_uses_defaults (store: hexpattern.segments.SegmentStore) -> None:

	"""New segments run for 1000 ms at 50 %."""

	segment_id = store.create_segment(2)
	segment = store.find(2, segment_id)

	assert segment is not None
	assert segment.duration_ms == 1000
	assert segment.speed_percent == 50
	assert len(store.track(2)) == 1


def test_ids_are_clock_derived_and_unique (clock, store: hexpattern.segments.SegmentStore) -> None:

	"""Ids come from the millisecond clock and are bumped when it stands still."""

	first = store.create_segment(0)
	second = store.create_segment(0)

	clock.now = 5.0
	third = store.create_segment(0)

	assert first == 1000
	assert second == 1001
	assert third == 5000


def test_id_clock_never_goes_backwards () -> None:

	"""A clock that steps back still yields increasing ids."""

	times = iter([2.0, 1.0])
	id_clock = hexpattern.segments.SegmentIdClock(lambda: next(times))

	assert id_clock.next_id() == 2000
	assert id_clock.next_id() == 2001


def test_create_appends_in_order (store: hexpattern.segments.SegmentStore) -> None:

	"""Segments play in creation order."""

	ids = [store.create_segment(1) for _ in range(3)]

	assert [segment.id for segment in store.track(1)] == ids


def test_update_field_parses_strings (store: hexpattern.segments.SegmentStore) -> None:

	"""Raw slider values arrive as strings and are parsed to integers."""

	segment_id = store.create_segment(0)

	store.update_field(0, segment_id, "duration", "1500")
	store.update_field(0, segment_id, "speed", "75")

	segment = store.find(0, segment_id)
	assert segment.duration_ms == 1500
	assert segment.speed_percent == 75


def test_update_field_truncates_floats (store: hexpattern.segments.SegmentStore) -> None:

	"""Float input is truncated toward zero like parseInt."""

	segment_id = store.create_segment(0)

	store.update_field(0, segment_id, "speed", 42.9)

	assert store.find(0, segment_id).speed_percent == 42


def test_update_field_does_not_clamp (store: hexpattern.segments.SegmentStore) -> None:

	"""The store writes out-of-range values as given; clamping is the caller's job."""

	segment_id = store.create_segment(0)

	store.update_field(0, segment_id, "duration", 0)
	assert store.find(0, segment_id).duration_ms == 0

	store.update_field(0, segment_id, "duration", 50000)
	assert store.find(0, segment_id).duration_ms == 50000


def test_update_unknown_id_is_ignored (store: hexpattern.segments.SegmentStore) -> None:

	"""A stale id leaves the track untouched."""

	store.create_segment(0)
	before = store.track(0)

	store.update_field(0, 123456, "speed", 10)

	assert store.track(0) is before


def test_update_non_numeric_is_ignored (store: hexpattern.segments.SegmentStore) -> None:

	"""A value with no leading integer is not stored."""

	segment_id = store.create_segment(0)

	store.update_field(0, segment_id, "speed", "fast")

	assert store.find(0, segment_id).speed_percent == 50


def test_update_unknown_field_raises (store: hexpattern.segments.SegmentStore) -> None:

	"""Only duration and speed can be edited."""

	segment_id = store.create_segment(0)

	with pytest.raises(ValueError, match="colour"):
		store.update_field(0, segment_id, "colour", 1)


def test_update_preserves_order_and_other_segments (store: hexpattern.segments.SegmentStore) -> None:

	"""Editing one segment replaces only that segment in place."""

	ids = [store.create_segment(0) for _ in range(3)]
	untouched = store.track(0)[0]

	store.update_field(0, ids[1], "speed", 90)

	track = store.track(0)
	assert [segment.id for segment in track] == ids
	assert track[0] is untouched
	assert track[1].speed_percent == 90


def test_edits_leave_other_channels_alone (store: hexpattern.segments.SegmentStore) -> None:

	"""Mutating one channel never replaces another channel's track."""

	store.create_segment(4)
	other = store.track(4)

	segment_id = store.create_segment(0)
	store.update_field(0, segment_id, "duration", 2000)
	store.remove_segment(0, segment_id)

	assert store.track(4) is other


def test_remove_segment (store: hexpattern.segments.SegmentStore) -> None:

	"""Removing keeps the order of the remaining segments."""

	ids = [store.create_segment(0) for _ in range(3)]

	store.remove_segment(0, ids[1])

	assert [segment.id for segment in store.track(0)] == [ids[0], ids[2]]


def test_remove_last_segment_leaves_empty_track (store: hexpattern.segments.SegmentStore) -> None:

	"""An emptied track is still a valid track."""

	segment_id = store.create_segment(6)
	store.remove_segment(6, segment_id)

	assert store.track(6) == ()
	assert store.total_duration(6) == 0


def test_remove_unknown_id_is_ignored (store: hexpattern.segments.SegmentStore) -> None:

	"""Removing a missing id does nothing."""

	store.create_segment(0)
	before = store.track(0)

	store.remove_segment(0, 999)

	assert store.track(0) is before


def test_always_seven_tracks (store: hexpattern.segments.SegmentStore) -> None:

	"""The track set has a fixed size of seven."""

	assert len(store.tracks()) == hexpattern.constants.CHANNEL_COUNT
	assert all(track == () for track in store.tracks())


def test_invalid_channel_raises (store: hexpattern.segments.SegmentStore) -> None:

	"""Channels outside 0-6 are rejected."""

	with pytest.raises(ValueError):
		store.create_segment(7)

	with pytest.raises(ValueError):
		store.track(-1)


def test_replace_track_and_total_duration (store: hexpattern.segments.SegmentStore) -> None:

	"""replace_track builds fresh segments from (duration, speed) pairs."""

	store.create_segment(3)

	ids = store.replace_track(3, [(500, 10), (1500, 90)])

	track = store.track(3)
	assert [segment.id for segment in track] == ids
	assert [(s.duration_ms, s.speed_percent) for s in track] == [(500, 10), (1500, 90)]
	assert store.total_duration(3) == 2000


def test_parse_int_variants () -> None:

	"""Raw values parse the way a range input's value does."""

	assert hexpattern.segments.parse_int(12) == 12
	assert hexpattern.segments.parse_int(-3.7) == -3
	assert hexpattern.segments.parse_int(" 250ms") == 250
	assert hexpattern.segments.parse_int("abc") is None
	assert hexpattern.segments.parse_int(float("nan")) is None
	assert hexpattern.segments.parse_int(None) is None
