import dataclasses
import typing

import hexpattern.constants
import hexpattern.segments


@dataclasses.dataclass (frozen=True)
class SegmentBar:

	"""
	Geometry of one segment in a track view, as percentages of the container.
	"""

	segment_id: int
	left_percent: float
	width_percent: float
	height_percent: float
	label: str


def segment_bars (
	track: typing.Sequence[hexpattern.segments.Segment],
	max_speed: float = hexpattern.constants.MAX_PHYSICAL_SPEED
) -> typing.List[SegmentBar]:

	"""
	Lay a track out left to right: width follows duration, height follows speed.

	A track with no total duration has nothing to draw and returns an empty list.
	"""

	total_duration = sum(segment.duration_ms for segment in track)

	if total_duration <= 0 or max_speed <= 0:
		return []

	bars: typing.List[SegmentBar] = []
	left = 0.0

	for segment in track:
		width = segment.duration_ms / total_duration * 100
		physical_speed = hexpattern.constants.to_physical_speed(segment.speed_percent)

		bars.append(SegmentBar(
			segment_id = segment.id,
			left_percent = left,
			width_percent = width,
			height_percent = physical_speed / max_speed * 100,
			label = f"{segment.duration_ms}ms, {physical_speed:.2f}"
		))

		left += width

	return bars
