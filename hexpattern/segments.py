import dataclasses
import logging
import re
import time
import typing

import hexpattern.constants


logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


@dataclasses.dataclass (frozen=True)
class Segment:

	"""
	A timed (duration, speed) instruction within a channel's track.
	"""

	id: int
	duration_ms: int = hexpattern.constants.DEFAULT_DURATION_MS
	speed_percent: int = hexpattern.constants.DEFAULT_SPEED_PERCENT


Track = typing.Tuple[Segment, ...]


class SegmentIdClock:

	"""
	Issues segment ids derived from a millisecond clock.

	Ids never go backwards.  When the clock has not moved on since the last id
	(two segments created within the same millisecond) the next id is bumped by
	one so every id stays unique.
	"""

	def __init__ (self, clock: typing.Optional[typing.Callable[[], float]] = None) -> None:

		self._clock = clock if clock is not None else time.time
		self._last: typing.Optional[int] = None

	def next_id (self) -> int:

		"""Return the next id."""

		candidate = int(self._clock() * 1000)

		if self._last is not None and candidate <= self._last:
			candidate = self._last + 1

		self._last = candidate
		return candidate


def _validate_channel (channel: int) -> None:

	if channel not in hexpattern.constants.CHANNELS:
		raise ValueError(f"Channel must be between 0 and {hexpattern.constants.CHANNEL_COUNT - 1}, got {channel!r}")


def parse_int (raw_value: typing.Any) -> typing.Optional[int]:

	"""
	Parse a raw edit value into an integer the way a range input value is read.

	Integers pass through, floats truncate toward zero and strings yield their
	leading integer (``"1500ms"`` -> 1500).  Returns None when nothing numeric
	can be read.
	"""

	if isinstance(raw_value, bool):
		return int(raw_value)

	if isinstance(raw_value, int):
		return raw_value

	if isinstance(raw_value, float):
		if raw_value != raw_value or raw_value in (float("inf"), float("-inf")):
			return None
		return int(raw_value)

	if isinstance(raw_value, str):
		match = _LEADING_INT.match(raw_value)
		if match is None:
			return None
		return int(match.group(1))

	return None


class SegmentStore:

	"""
	Owns the ordered track of segments for each of the seven channels.

	Every mutation replaces the affected channel's tuple; other channels and
	untouched segments keep their identity and order.
	"""

	def __init__ (self, id_clock: typing.Optional[SegmentIdClock] = None) -> None:

		"""
		Create a track set with seven empty tracks.

		Parameters:
			id_clock: Source of segment ids (defaults to wall-clock milliseconds).
		"""

		self._id_clock = id_clock if id_clock is not None else SegmentIdClock()
		self._tracks: typing.Dict[int, Track] = {channel: () for channel in hexpattern.constants.CHANNELS}

	def track (self, channel: int) -> Track:

		"""Return the current track for a channel."""

		_validate_channel(channel)
		return self._tracks[channel]

	def tracks (self) -> typing.List[Track]:

		"""Return all seven tracks in channel order."""

		return [self._tracks[channel] for channel in hexpattern.constants.CHANNELS]

	def find (self, channel: int, segment_id: int) -> typing.Optional[Segment]:

		"""Return the segment with this id on the channel, or None."""

		for segment in self.track(channel):
			if segment.id == segment_id:
				return segment

		return None

	def total_duration (self, channel: int) -> int:

		"""Sum of segment durations on a channel, in milliseconds."""

		return sum(segment.duration_ms for segment in self.track(channel))

	def create_segment (self, channel: int) -> int:

		"""
		Append a default segment (1000 ms at 50 %) to the channel's track and return its id.
		"""

		_validate_channel(channel)

		segment = Segment(id=self._id_clock.next_id())
		self._tracks[channel] = self._tracks[channel] + (segment,)

		logger.debug(f"Created segment {segment.id} on channel {channel}")

		return segment.id

	def update_field (self, channel: int, segment_id: int, field: str, raw_value: typing.Any) -> None:

		"""
		Set one field of a segment from a raw value.

		The value is parsed to an integer but not clamped; range enforcement
		belongs to the caller.  Unknown ids are ignored so stale references
		from the UI do nothing.
		"""

		if field == hexpattern.constants.FIELD_DURATION:
			attribute = "duration_ms"
		elif field == hexpattern.constants.FIELD_SPEED:
			attribute = "speed_percent"
		else:
			raise ValueError(f"Unknown segment field {field!r}")

		track = self.track(channel)
		value = parse_int(raw_value)

		if value is None:
			logger.debug(f"Ignoring non-numeric {field} value {raw_value!r} for segment {segment_id}")
			return

		if not any(segment.id == segment_id for segment in track):
			return

		self._tracks[channel] = tuple(
			dataclasses.replace(segment, **{attribute: value}) if segment.id == segment_id else segment
			for segment in track
		)

	def remove_segment (self, channel: int, segment_id: int) -> None:

		"""Remove a segment from the channel's track; unknown ids are ignored."""

		track = self.track(channel)
		remaining = tuple(segment for segment in track if segment.id != segment_id)

		if len(remaining) != len(track):
			self._tracks[channel] = remaining

	def replace_track (self, channel: int, segments: typing.Iterable[typing.Tuple[int, int]]) -> typing.List[int]:

		"""
		Replace a channel's track with new segments built from (duration_ms, speed_percent) pairs.

		Returns the ids of the created segments in order.
		"""

		_validate_channel(channel)

		track = tuple(
			Segment(id=self._id_clock.next_id(), duration_ms=int(duration_ms), speed_percent=int(speed_percent))
			for duration_ms, speed_percent in segments
		)

		self._tracks[channel] = track

		return [segment.id for segment in track]

	def clear (self) -> None:

		"""Empty every track."""

		self._tracks = {channel: () for channel in hexpattern.constants.CHANNELS}
