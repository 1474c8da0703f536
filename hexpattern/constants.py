"""Constants for hexpattern.

Channels, segment bounds, the percent-to-physical speed factor and the
nominal playback tick.  Channel 0 is the center motor; channels 1-6 sit on
the hexagon at 60 degree increments.
"""

# Channels
CHANNEL_COUNT = 7
CENTER_CHANNEL = 0
CHANNELS = tuple(range(CHANNEL_COUNT))

# Segment defaults applied by create_segment()
DEFAULT_DURATION_MS = 1000
DEFAULT_SPEED_PERCENT = 50

# Segment bounds
MIN_DURATION_MS = 100           # Floor for drag and direct edits
MAX_DURATION_MS = 30000
MIN_SPEED_PERCENT = 0
MAX_SPEED_PERCENT = 100

# Speed conversion: 0-100 % in the editor maps to 0-6 on the controller
SPEED_FACTOR = 0.06
MAX_PHYSICAL_SPEED = MAX_SPEED_PERCENT * SPEED_FACTOR
SPEED_DECIMALS = 2

# Playback clock (approximates a 60 Hz render clock)
TICK_MS = 16

# Transport
DEFAULT_ENDPOINT = "http://192.168.0.40:8080/pattern"
DEFAULT_TIMEOUT_SECONDS = 5.0

# Field names accepted by SegmentStore.update_field()
FIELD_DURATION = "duration"
FIELD_SPEED = "speed"


def to_physical_speed (speed_percent: float) -> float:

	"""Convert an editor speed (0-100 %) to controller units (0-6)."""

	return speed_percent * SPEED_FACTOR
