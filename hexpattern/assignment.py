"""Binding of physical hexagon positions to logical channels.

Position 0 is the center motor; positions 1-6 surround it at 60 degree
steps starting from the positive x axis.  Any position can be bound to any
channel and a channel may drive several positions at once.
"""

import logging
import math
import typing

import hexpattern.constants


logger = logging.getLogger(__name__)

MOTOR_RADIUS = 20
OUTER_RADIUS = 100
UNASSIGNED_BADGE = "-"


def _validate (value: int, name: str) -> None:

	if value not in hexpattern.constants.CHANNELS:
		raise ValueError(f"{name} must be between 0 and {hexpattern.constants.CHANNEL_COUNT - 1}, got {value!r}")


def position_center (position: int, center_x: float, center_y: float, outer_radius: float = OUTER_RADIUS) -> typing.Tuple[float, float]:

	"""
	Return the drawing center of a physical position.
	"""

	_validate(position, "Position")

	if position == hexpattern.constants.CENTER_CHANNEL:
		return center_x, center_y

	angle = (position - 1) * math.pi / 3

	return center_x + outer_radius * math.cos(angle), center_y + outer_radius * math.sin(angle)


def hit_test (
	x: float,
	y: float,
	center_x: float,
	center_y: float,
	radius: float = MOTOR_RADIUS,
	outer_radius: float = OUTER_RADIUS
) -> typing.Optional[int]:

	"""
	Return the position whose motor circle contains the point, or None.

	The center motor is checked first, then the ring in order.
	"""

	for position in hexpattern.constants.CHANNELS:
		motor_x, motor_y = position_center(position, center_x, center_y, outer_radius)

		if math.hypot(x - motor_x, y - motor_y) <= radius:
			return position

	return None


class MotorAssignmentMap:

	"""
	Partial mapping from physical position to channel, edited by toggling.
	"""

	def __init__ (self) -> None:

		self._assignments: typing.Dict[int, int] = {}

	def toggle_assignment (self, position: int, selected_channel: int) -> None:

		"""
		Bind a position to the selected channel, or unbind it if already bound to it.

		Binding overwrites whatever the position held before; other positions
		bound to the same channel are left alone.
		"""

		_validate(position, "Position")
		_validate(selected_channel, "Channel")

		if self._assignments.get(position) == selected_channel:
			del self._assignments[position]
			logger.debug(f"Position {position} unassigned")
		else:
			self._assignments[position] = selected_channel
			logger.debug(f"Position {position} -> channel {selected_channel}")

	def channel_at (self, position: int) -> typing.Optional[int]:

		"""The channel bound to a position, or None."""

		_validate(position, "Position")
		return self._assignments.get(position)

	def positions_for (self, channel: int) -> typing.List[int]:

		"""All positions currently bound to a channel, ascending."""

		return sorted(position for position, bound in self._assignments.items() if bound == channel)

	def badge (self, position: int) -> str:

		"""Text drawn on a position's motor: the bound channel or a dash."""

		channel = self.channel_at(position)
		return UNASSIGNED_BADGE if channel is None else str(channel)

	def as_dict (self) -> typing.Dict[int, int]:

		"""A copy of the current mapping."""

		return dict(self._assignments)

	def clear (self) -> None:

		"""Remove every binding."""

		self._assignments.clear()
