"""Live terminal preview of the seven channels during playback.

Shows one row per channel with its position in the track, progress through
the current segment, physical speed and a spinner that turns with the
channel's angle.  Optionally draws the selected channel's segments as bars
above the rows, width by duration and height by speed.

Log messages scroll above the preview without disruption.

Enable it before ``play()``:

```python
editor.display()                  # channel rows + track bars
editor.display(track_bars=False)  # channel rows only
editor.play()
```

The region looks like::

	M2   |▃▃▃▃▃▃▇▇▇▇▇▇▇▇▇▇▁▁▁▁|
	  M0  [0,3]  |######..............|  31%  3.00 /  seg 1/2
	> M2  [-]    |#############.......|  68%  4.80 |  seg 2/3
	  M1  [-]    idle
"""

import logging
import math
import shutil
import sys
import time
import typing

import hexpattern.layout
import hexpattern.playback

if typing.TYPE_CHECKING:
	from hexpattern.editor import Editor


_SPINNER = "-\\|/"
_BAR_LEVELS = " ▁▂▃▄▅▆▇█"
_PROGRESS_WIDTH = 20
_LABEL_WIDTH = 5
_MIN_TERMINAL_WIDTH = 40


def spinner_char (render_angle: float) -> str:

	"""Pick a spinner glyph for an angle in [0, 2*pi)."""

	step = math.tau / len(_SPINNER)
	return _SPINNER[int(render_angle / step) % len(_SPINNER)]


def progress_bar (progress: float, width: int = _PROGRESS_WIDTH) -> str:

	"""Render a progress fraction as ``|###.....|``."""

	filled = max(0, min(width, int(progress * width)))
	return "|" + "#" * filled + "." * (width - filled) + "|"


class TrackBars:

	"""ASCII rendering of one track's segment layout.

	Each terminal column belongs to the segment covering that share of the
	total duration; the glyph height follows the segment's speed.
	"""

	def __init__ (self, editor: "Editor") -> None:

		self._editor = editor
		self._lines: typing.List[str] = []

	@property
	def lines (self) -> typing.List[str]:

		"""The most recently built lines."""

		return list(self._lines)

	def build (self, term_width: typing.Optional[int] = None) -> None:

		"""Rebuild the bar line for the selected channel."""

		if term_width is None:
			term_width = shutil.get_terminal_size(fallback=(80, 24)).columns

		channel = self._editor.channel
		label = f"M{channel}".ljust(_LABEL_WIDTH)
		columns = term_width - len(label) - 2

		if term_width < _MIN_TERMINAL_WIDTH or columns <= 0:
			self._lines = []
			return

		bars = hexpattern.layout.segment_bars(self._editor.track(channel))

		if not bars:
			self._lines = [f"{label}(no segments)"]
			return

		cells: typing.List[str] = []

		for column in range(columns):
			position = (column + 0.5) / columns * 100
			bar = next((b for b in bars if b.left_percent <= position < b.left_percent + b.width_percent), bars[-1])
			level = int(round(bar.height_percent / 100 * (len(_BAR_LEVELS) - 1)))
			cells.append(_BAR_LEVELS[level])

		self._lines = [f"{label}|{''.join(cells)}|"]


class DisplayLogHandler (logging.Handler):

	"""Logging handler that clears and redraws the preview around log output.

	Installed by ``Display.start()`` and removed by ``Display.stop()``.
	"""

	def __init__ (self, display: "Display") -> None:

		super().__init__()
		self._display = display

	def emit (self, record: logging.LogRecord) -> None:

		"""Clear the preview, write the log message, then redraw."""

		try:
			self._display.clear()

			msg = self.format(record)
			sys.stderr.write(msg + "\n")
			sys.stderr.flush()

			self._display.draw()

		except Exception:
			self.handleError(record)


class Display:

	"""Live-updating terminal preview fed by ``"frame"`` events.

	Frames arrive every tick (about 60 per second); the terminal is redrawn at
	most every ``refresh_ms`` so the preview stays cheap.
	"""

	def __init__ (self, editor: "Editor", track_bars: bool = True, refresh_ms: int = 100) -> None:

		"""
		Parameters:
			editor: The editor whose selection and assignments are shown.
			track_bars: Draw the selected track's segments above the rows.
			refresh_ms: Minimum time between redraws.
		"""

		self._editor = editor
		self._refresh_seconds = refresh_ms / 1000.0
		self._bars: typing.Optional[TrackBars] = TrackBars(editor) if track_bars else None
		self._active: bool = False
		self._handler: typing.Optional[DisplayLogHandler] = None
		self._saved_handlers: typing.List[logging.Handler] = []
		self._lines: typing.List[str] = []
		self._last_draw: float = 0.0
		self._drawn_line_count: int = 0

	@property
	def lines (self) -> typing.List[str]:

		"""Lines of the most recent render."""

		return list(self._lines)

	def start (self) -> None:

		"""Install the log handler and activate the preview.

		Existing root handlers are saved and restored by ``stop()``.
		"""

		if self._active:
			return

		self._active = True

		root_logger = logging.getLogger()
		self._saved_handlers = list(root_logger.handlers)
		self._handler = DisplayLogHandler(self)

		if self._saved_handlers and self._saved_handlers[0].formatter:
			self._handler.setFormatter(self._saved_handlers[0].formatter)
		else:
			self._handler.setFormatter(logging.Formatter("%(levelname)s:%(name)s:%(message)s"))

		root_logger.handlers.clear()
		root_logger.addHandler(self._handler)

	def stop (self) -> None:

		"""Clear the preview and restore original log handlers."""

		if not self._active:
			return

		self.clear()
		self._active = False

		root_logger = logging.getLogger()
		root_logger.handlers.clear()

		for handler in self._saved_handlers:
			root_logger.addHandler(handler)

		self._saved_handlers = []
		self._handler = None

	def update (self, frames: typing.List[hexpattern.playback.ChannelFrame]) -> None:

		"""Rebuild and redraw the preview; throttled to ``refresh_ms``."""

		if not self._active:
			return

		now = time.monotonic()

		if now - self._last_draw < self._refresh_seconds:
			return

		self._last_draw = now
		self._lines = self.render(frames)
		self.draw()

	def render (self, frames: typing.List[hexpattern.playback.ChannelFrame]) -> typing.List[str]:

		"""Build the preview lines for a set of frames."""

		lines: typing.List[str] = []

		if self._bars is not None:
			self._bars.build()
			lines.extend(self._bars.lines)

		for frame in frames:
			lines.append(self._format_channel(frame))

		return lines

	def _format_channel (self, frame: hexpattern.playback.ChannelFrame) -> str:

		editor = self._editor
		marker = ">" if frame.channel == editor.channel else " "
		positions = editor.assignments.positions_for(frame.channel)
		badge = "[" + (",".join(str(p) for p in positions) if positions else "-") + "]"
		prefix = f"{marker} M{frame.channel}  {badge.ljust(7)}"

		if frame.idle:
			return f"{prefix}idle"

		track_length = len(editor.track(frame.channel))

		return (
			f"{prefix}{progress_bar(frame.progress)} {frame.progress * 100:3.0f}%  "
			f"{frame.physical_speed:.2f} {spinner_char(frame.render_angle)}  "
			f"seg {frame.segment_index + 1}/{track_length}"
		)

	def draw (self) -> None:

		"""Write the current preview to the terminal."""

		if not self._active or not self._lines:
			return

		# Cursor sits on the last line; move up to the first drawn line.
		if self._drawn_line_count > 1:
			sys.stderr.write(f"\033[{self._drawn_line_count - 1}A")

		for line in self._lines[:-1]:
			sys.stderr.write(f"\r\033[K{line}\n")

		sys.stderr.write(f"\r\033[K{self._lines[-1]}")
		sys.stderr.flush()

		self._drawn_line_count = len(self._lines)

	def clear (self) -> None:

		"""Erase the preview region from the terminal."""

		if not self._active:
			return

		if self._drawn_line_count > 1:
			sys.stderr.write(f"\033[{self._drawn_line_count - 1}A")

			for _ in range(self._drawn_line_count):
				sys.stderr.write("\r\033[K\n")

			sys.stderr.write(f"\033[{self._drawn_line_count}A")
		else:
			sys.stderr.write("\r\033[K")

		sys.stderr.flush()
		self._drawn_line_count = 0
