"""Pointer-drag interpretation for editing segment duration and speed.

A drag over a segment either stretches it (horizontal movement, duration) or
raises and lowers it (vertical movement, speed).  The free gesture decides the
axis on the first movement it sees and keeps that axis until the pointer is
released; the handle variants start already locked to one axis.

The controller is an explicit state machine fed discrete pointer events::

	controller.drag_start(channel, segment_id, x, y, width_px, height_px)
	controller.drag_move(x, y)   # any number of times
	controller.drag_end()

Each move recomputes the full offset from the drag anchor and adds it to the
segment's *current* value, so repeated moves on the same gesture compound.
"""

import dataclasses
import enum
import logging
import math
import typing

import hexpattern.constants
import hexpattern.segments


logger = logging.getLogger(__name__)


class Axis (enum.Enum):

	"""Which segment field a drag edits."""

	SPEED = "speed"
	DURATION = "duration"


@dataclasses.dataclass
class Dragging:

	"""State of an active drag gesture."""

	channel: int
	segment_id: int
	initial_x: float
	initial_y: float
	width_px: float
	height_px: float
	axis: typing.Optional[Axis] = None


def clamp (value: float, low: float, high: float) -> float:

	"""Clamp a value to the inclusive range [low, high]."""

	return max(low, min(high, value))


def round_half_up (value: float) -> int:

	"""Round to the nearest integer with halves going up (2.5 -> 3, -2.5 -> -2)."""

	return int(math.floor(value + 0.5))


class GestureController:

	"""
	Turns pointer drags into duration and speed edits on a SegmentStore.
	"""

	def __init__ (self, store: hexpattern.segments.SegmentStore) -> None:

		self._store = store
		self._drag: typing.Optional[Dragging] = None

	@property
	def active (self) -> bool:

		"""True while a drag is in progress."""

		return self._drag is not None

	@property
	def axis (self) -> typing.Optional[Axis]:

		"""The locked axis of the current drag, or None when idle or undecided."""

		return self._drag.axis if self._drag is not None else None

	@property
	def target (self) -> typing.Optional[typing.Tuple[int, int]]:

		"""(channel, segment_id) of the current drag, or None when idle."""

		if self._drag is None:
			return None

		return self._drag.channel, self._drag.segment_id

	def drag_start (
		self,
		channel: int,
		segment_id: int,
		x: float,
		y: float,
		width_px: float,
		height_px: float,
		axis: typing.Optional[Axis] = None
	) -> None:

		"""
		Begin a drag on a segment.

		Parameters:
			channel: Channel whose track holds the segment.
			segment_id: Segment being edited.
			x: Pointer x position at press.
			y: Pointer y position at press.
			width_px: Width of the track container in pixels.
			height_px: Height of the track container in pixels.
			axis: Lock the gesture up front (the dedicated speed and duration
				handles).  ``None`` decides the axis from the first movement.
		"""

		if self._drag is not None:
			logger.debug(f"Replacing unfinished drag on segment {self._drag.segment_id}")

		self._drag = Dragging(
			channel = channel,
			segment_id = segment_id,
			initial_x = x,
			initial_y = y,
			width_px = width_px,
			height_px = height_px,
			axis = axis
		)

	def drag_move (self, x: float, y: float) -> bool:

		"""
		Apply a pointer move to the segment under the active drag.

		Returns True when a value was written to the segment.
		"""

		drag = self._drag

		if drag is None:
			return False

		delta_x = x - drag.initial_x
		delta_y = y - drag.initial_y

		if drag.axis is None:

			if delta_x == 0 and delta_y == 0:
				return False

			drag.axis = Axis.SPEED if abs(delta_y) > abs(delta_x) else Axis.DURATION

		if drag.axis is Axis.SPEED:
			return self._apply_speed(drag, y)
		else:
			return self._apply_duration(drag, x)

	def drag_end (self) -> None:

		"""Release the pointer; later moves are ignored."""

		self._drag = None

	def _apply_speed (self, drag: Dragging, y: float) -> bool:

		if drag.height_px <= 0:
			return False

		segment = self._store.find(drag.channel, drag.segment_id)

		if segment is None:
			return False

		speed_change = (drag.initial_y - y) / drag.height_px * 100

		new_speed = clamp(
			segment.speed_percent + speed_change,
			hexpattern.constants.MIN_SPEED_PERCENT,
			hexpattern.constants.MAX_SPEED_PERCENT
		)

		self._store.update_field(drag.channel, drag.segment_id, hexpattern.constants.FIELD_SPEED, round_half_up(new_speed))

		return True

	def _apply_duration (self, drag: Dragging, x: float) -> bool:

		if drag.width_px <= 0:
			return False

		segment = self._store.find(drag.channel, drag.segment_id)

		if segment is None:
			return False

		total_duration = self._store.total_duration(drag.channel)
		duration_change = (x - drag.initial_x) / drag.width_px * total_duration

		new_duration = clamp(
			segment.duration_ms + duration_change,
			hexpattern.constants.MIN_DURATION_MS,
			hexpattern.constants.MAX_DURATION_MS
		)

		self._store.update_field(drag.channel, drag.segment_id, hexpattern.constants.FIELD_DURATION, round_half_up(new_duration))

		return True
