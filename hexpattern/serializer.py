"""Wire format for patterns sent to the motor controller.

A pattern lists every channel that has segments, in ascending channel order::

	{
	  "patterns": [
	    {"motorId": 3, "segments": [{"duration": 1000, "speed": 3.0}]}
	  ]
	}

Speeds are in controller units (0-6, two decimals).  Channels with empty
tracks are left out entirely.
"""

import dataclasses
import json
import math
import typing

import hexpattern.constants
import hexpattern.segments


class PatternFormatError (ValueError):

	"""Raised when a pattern document does not match the wire format."""


@dataclasses.dataclass (frozen=True)
class SegmentSpec:

	"""One segment as the controller sees it."""

	duration: int
	speed: float


@dataclasses.dataclass (frozen=True)
class MotorPattern:

	"""All segments for one motor."""

	motor_id: int
	segments: typing.Tuple[SegmentSpec, ...]


@dataclasses.dataclass (frozen=True)
class Pattern:

	"""A complete pattern ready to submit."""

	patterns: typing.Tuple[MotorPattern, ...] = ()

	def to_dict (self) -> typing.Dict[str, typing.Any]:

		"""Return the JSON-ready wire representation."""

		return {
			"patterns": [
				{
					"motorId": motor.motor_id,
					"segments": [{"duration": spec.duration, "speed": spec.speed} for spec in motor.segments]
				}
				for motor in self.patterns
			]
		}

	def motor (self, motor_id: int) -> typing.Optional[MotorPattern]:

		"""Return the entry for a motor, or None if it is absent."""

		for motor in self.patterns:
			if motor.motor_id == motor_id:
				return motor

		return None


def serialize (store: hexpattern.segments.SegmentStore) -> Pattern:

	"""
	Project the store's tracks into a Pattern.

	Speed percent is converted with ``round(percent * 0.06, 2)``.
	"""

	motors: typing.List[MotorPattern] = []

	for channel, track in enumerate(store.tracks()):

		if not track:
			continue

		specs = tuple(
			SegmentSpec(
				duration = segment.duration_ms,
				speed = round(hexpattern.constants.to_physical_speed(segment.speed_percent), hexpattern.constants.SPEED_DECIMALS)
			)
			for segment in track
		)

		motors.append(MotorPattern(motor_id=channel, segments=specs))

	return Pattern(patterns=tuple(motors))


def to_json (pattern: Pattern, indent: typing.Optional[int] = 2) -> str:

	"""Encode a pattern as JSON text."""

	return json.dumps(pattern.to_dict(), indent=indent)


def _is_number (value: typing.Any) -> bool:

	return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_segment (motor_id: int, raw: typing.Any) -> SegmentSpec:

	"""Validate one wire segment: a positive whole duration and a finite speed within 0-6."""

	if not isinstance(raw, dict) or "duration" not in raw or "speed" not in raw:
		raise PatternFormatError(f"Bad segment on motor {motor_id}: {raw!r}")

	duration = raw["duration"]
	speed = raw["speed"]

	if not _is_number(duration) or not math.isfinite(duration) or duration != int(duration) or duration <= 0:
		raise PatternFormatError(f"Segment duration on motor {motor_id} must be a positive integer, got {duration!r}")

	if not _is_number(speed) or not math.isfinite(speed) or not 0 <= speed <= hexpattern.constants.MAX_PHYSICAL_SPEED:
		raise PatternFormatError(
			f"Segment speed on motor {motor_id} must be between 0 and {hexpattern.constants.MAX_PHYSICAL_SPEED:.0f}, got {speed!r}"
		)

	return SegmentSpec(duration=int(duration), speed=float(speed))


def parse (data: typing.Union[str, bytes, typing.Dict[str, typing.Any]]) -> Pattern:

	"""
	Decode a wire-format document (JSON text or an already decoded dict).

	Motors are returned in ascending id order.

	Raises:
		PatternFormatError: If the document is not valid JSON or does not
			follow the wire format.
	"""

	if isinstance(data, (str, bytes)):
		try:
			data = json.loads(data)
		except json.JSONDecodeError as exc:
			raise PatternFormatError(f"Invalid pattern JSON: {exc}") from exc

	if not isinstance(data, dict) or not isinstance(data.get("patterns"), list):
		raise PatternFormatError("Pattern document must be an object with a 'patterns' list")

	motors: typing.Dict[int, MotorPattern] = {}

	for entry in data["patterns"]:

		if not isinstance(entry, dict):
			raise PatternFormatError(f"Pattern entry must be an object, got {entry!r}")

		motor_id = entry.get("motorId")

		if isinstance(motor_id, bool) or not isinstance(motor_id, int) or motor_id not in hexpattern.constants.CHANNELS:
			raise PatternFormatError(f"motorId must be an integer 0-{hexpattern.constants.CHANNEL_COUNT - 1}, got {motor_id!r}")

		if motor_id in motors:
			raise PatternFormatError(f"Duplicate motorId {motor_id}")

		raw_segments = entry.get("segments")

		if not isinstance(raw_segments, list):
			raise PatternFormatError(f"Motor {motor_id} segments must be a list")

		specs = tuple(_parse_segment(motor_id, raw) for raw in raw_segments)

		motors[motor_id] = MotorPattern(motor_id=motor_id, segments=specs)

	return Pattern(patterns=tuple(motors[motor_id] for motor_id in sorted(motors)))


def speed_to_percent (speed: float) -> int:

	"""Convert a controller speed back to an editor percentage, clamped to 0-100."""

	percent = int(round(speed / hexpattern.constants.SPEED_FACTOR))

	return max(hexpattern.constants.MIN_SPEED_PERCENT, min(hexpattern.constants.MAX_SPEED_PERCENT, percent))


def load_into (store: hexpattern.segments.SegmentStore, pattern: Pattern) -> None:

	"""
	Replace the store's tracks with a pattern's contents.

	Channels absent from the pattern end up empty.
	"""

	store.clear()

	for motor in pattern.patterns:
		store.replace_track(
			motor.motor_id,
			[(spec.duration, speed_to_percent(spec.speed)) for spec in motor.segments]
		)
