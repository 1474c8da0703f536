import asyncio
import dataclasses
import logging
import signal
import typing

import hexpattern.assignment
import hexpattern.client
import hexpattern.config
import hexpattern.constants
import hexpattern.display
import hexpattern.event_emitter
import hexpattern.gesture
import hexpattern.midi_import
import hexpattern.playback
import hexpattern.segments
import hexpattern.serializer
import hexpattern.web_ui


logger = logging.getLogger(__name__)


@dataclasses.dataclass
class SelectionState:

	"""Which channel and segment edits are aimed at."""

	selected_channel: int = hexpattern.constants.CENTER_CHANNEL
	selected_segment_id: typing.Optional[int] = None


class Editor:

	"""
	An editing session for a seven-motor pattern.

	The editor owns the track set, the current selection, the position
	assignments, the playback preview and the connection to the controller.
	Every editing call acts on the selected channel, the way the operator
	works with the tracks one at a time.

	Events (register with ``editor.on_event()``):

	- ``"frame"`` ``(frames)`` after every playback tick
	- ``"tracks_changed"`` ``(channel)`` after any segment edit
	- ``"assignments_changed"`` ``(mapping)`` after a toggle
	- ``"selection_changed"`` ``(selection)`` after the selection moves
	- ``"sent"`` ``(ack)`` / ``"send_failed"`` ``(error)`` once per ``send()``

	Example:
		```python
		editor = hexpattern.Editor(endpoint="http://10.0.0.5:8080/pattern")
		segment_id = editor.add_segment()
		editor.set_speed(segment_id, 80)
		editor.play()
		```
	"""

	def __init__ (
		self,
		endpoint: str = hexpattern.constants.DEFAULT_ENDPOINT,
		timeout: float = hexpattern.constants.DEFAULT_TIMEOUT_SECONDS,
		tick_ms: int = hexpattern.constants.TICK_MS,
		client: typing.Optional[hexpattern.client.ServerClient] = None,
		id_clock: typing.Optional[hexpattern.segments.SegmentIdClock] = None
	) -> None:

		"""
		Parameters:
			endpoint: URL the pattern is POSTed to on ``send()``.
			timeout: Seconds to wait for the controller.
			tick_ms: Playback tick length in milliseconds (default 16).
			client: Use this client instead of building one from *endpoint*.
			id_clock: Segment id source, mainly for deterministic tests.
		"""

		if tick_ms <= 0:
			raise ValueError("Tick length must be positive")

		self.tick_ms = tick_ms
		self.store = hexpattern.segments.SegmentStore(id_clock=id_clock)
		self.selection = SelectionState()
		self.assignments = hexpattern.assignment.MotorAssignmentMap()
		self.scheduler = hexpattern.playback.PlaybackScheduler(self.store)
		self.gestures = hexpattern.gesture.GestureController(self.store)
		self.client = client if client is not None else hexpattern.client.ServerClient(endpoint=endpoint, timeout=timeout)
		self.events = hexpattern.event_emitter.EventEmitter()

		self._display: typing.Optional[hexpattern.display.Display] = None
		self._web_ui: typing.Optional[hexpattern.web_ui.WebUI] = None
		self._stop_event: typing.Optional[asyncio.Event] = None
		self._send_tasks: typing.Set[asyncio.Task] = set()

	@classmethod
	def from_config (cls, config: hexpattern.config.EditorConfig) -> "Editor":

		"""Build an editor, display and web UI settings included, from a config."""

		editor = cls(endpoint=config.endpoint, timeout=config.timeout_seconds, tick_ms=config.tick_ms)

		if config.display:
			editor.display(track_bars=config.track_bars)

		if config.web_ui:
			editor.web_ui(port=config.web_ui_port)

		return editor

	def on_event (self, event_name: str, callback: typing.Callable[..., typing.Any]) -> None:

		"""Register a callback for an editor event."""

		self.events.on(event_name, callback)

	# ------------------------------------------------------------------
	# Selection
	# ------------------------------------------------------------------

	@property
	def channel (self) -> int:

		"""The selected channel."""

		return self.selection.selected_channel

	def select_channel (self, channel: int) -> None:

		"""Select a channel; the segment selection is cleared."""

		if channel not in hexpattern.constants.CHANNELS:
			raise ValueError(f"Channel must be between 0 and {hexpattern.constants.CHANNEL_COUNT - 1}, got {channel!r}")

		self.selection = SelectionState(selected_channel=channel)
		self.events.emit("selection_changed", self.selection)

	def select_segment (self, segment_id: typing.Optional[int]) -> None:

		"""Select a segment on the current channel, or clear with None."""

		self.selection = dataclasses.replace(self.selection, selected_segment_id=segment_id)
		self.events.emit("selection_changed", self.selection)

	# ------------------------------------------------------------------
	# Segment edits on the selected channel
	# ------------------------------------------------------------------

	def track (self, channel: typing.Optional[int] = None) -> hexpattern.segments.Track:

		"""The track of a channel (the selected one by default)."""

		return self.store.track(self.channel if channel is None else channel)

	def add_segment (self) -> int:

		"""Append a default segment to the selected channel and return its id."""

		segment_id = self.store.create_segment(self.channel)
		self._tracks_changed(self.channel)

		return segment_id

	def update_segment (self, segment_id: int, field: str, raw_value: typing.Any) -> None:

		"""Write a raw field value without clamping."""

		self.store.update_field(self.channel, segment_id, field, raw_value)
		self._tracks_changed(self.channel)

	def set_duration (self, segment_id: int, duration_ms: typing.Any) -> None:

		"""Set a segment's duration, clamped to 100-30000 ms."""

		value = hexpattern.segments.parse_int(duration_ms)

		if value is None:
			return

		value = int(hexpattern.gesture.clamp(value, hexpattern.constants.MIN_DURATION_MS, hexpattern.constants.MAX_DURATION_MS))
		self.update_segment(segment_id, hexpattern.constants.FIELD_DURATION, value)

	def set_speed (self, segment_id: int, speed_percent: typing.Any) -> None:

		"""Set a segment's speed, clamped to 0-100 %."""

		value = hexpattern.segments.parse_int(speed_percent)

		if value is None:
			return

		value = int(hexpattern.gesture.clamp(value, hexpattern.constants.MIN_SPEED_PERCENT, hexpattern.constants.MAX_SPEED_PERCENT))
		self.update_segment(segment_id, hexpattern.constants.FIELD_SPEED, value)

	def remove_segment (self, segment_id: int) -> None:

		"""Remove a segment from the selected channel."""

		self.store.remove_segment(self.channel, segment_id)

		if self.selection.selected_segment_id == segment_id:
			self.select_segment(None)

		self._tracks_changed(self.channel)

	def _tracks_changed (self, channel: int) -> None:

		self.events.emit("tracks_changed", channel)

	# ------------------------------------------------------------------
	# Motor positions
	# ------------------------------------------------------------------

	def toggle_assignment (self, position: int) -> None:

		"""Bind or unbind a physical position to the selected channel."""

		self.assignments.toggle_assignment(position, self.channel)
		self.events.emit("assignments_changed", self.assignments.as_dict())

	# ------------------------------------------------------------------
	# Gesture hooks
	# ------------------------------------------------------------------

	def pointer_down (
		self,
		segment_id: int,
		x: float,
		y: float,
		width_px: float,
		height_px: float,
		axis: typing.Optional[hexpattern.gesture.Axis] = None
	) -> None:

		"""Start dragging a segment of the selected channel; the segment becomes selected."""

		self.select_segment(segment_id)
		self.gestures.drag_start(self.channel, segment_id, x, y, width_px, height_px, axis=axis)

	def pointer_move (self, x: float, y: float) -> None:

		"""Feed a pointer move into the active drag."""

		target = self.gestures.target

		if target is None:
			return

		if self.gestures.drag_move(x, y):
			self._tracks_changed(target[0])

	def pointer_up (self) -> None:

		"""End the active drag."""

		self.gestures.drag_end()

	# ------------------------------------------------------------------
	# Patterns
	# ------------------------------------------------------------------

	def pattern (self) -> hexpattern.serializer.Pattern:

		"""The current tracks in wire form."""

		return hexpattern.serializer.serialize(self.store)

	def pattern_json (self, indent: typing.Optional[int] = 2) -> str:

		"""The current tracks as wire-format JSON text."""

		return hexpattern.serializer.to_json(self.pattern(), indent=indent)

	def load_pattern (self, data: typing.Union[str, bytes, typing.Dict[str, typing.Any]]) -> None:

		"""Replace every track with the contents of a wire-format document."""

		pattern = hexpattern.serializer.parse(data)
		hexpattern.serializer.load_into(self.store, pattern)
		self.selection = dataclasses.replace(self.selection, selected_segment_id=None)

		for channel in hexpattern.constants.CHANNELS:
			self._tracks_changed(channel)

	def load_midi (self, path: str, track_numbers: typing.Optional[typing.Sequence[int]] = None) -> None:

		"""Replace tracks with note velocity timelines from a MIDI file."""

		numbers = track_numbers if track_numbers is not None else hexpattern.config.DEFAULT_MIDI_TRACKS
		imported = hexpattern.midi_import.read_velocity_segments(path, numbers)

		for channel, segments in imported.items():
			self.store.replace_track(channel, segments)
			self._tracks_changed(channel)

		self.selection = dataclasses.replace(self.selection, selected_segment_id=None)

	# ------------------------------------------------------------------
	# Sending
	# ------------------------------------------------------------------

	def send (self) -> asyncio.Task:

		"""
		Submit the current pattern without blocking the caller.

		Must be called from within the running event loop.  The pattern is
		captured now; later edits do not affect this submission.  The outcome
		is announced once through ``"sent"`` or ``"send_failed"``.
		"""

		pattern = self.pattern()
		task = asyncio.get_running_loop().create_task(self._send(pattern))

		self._send_tasks.add(task)
		task.add_done_callback(self._send_tasks.discard)

		return task

	async def _send (self, pattern: hexpattern.serializer.Pattern) -> hexpattern.client.SubmitOutcome:

		outcome = await self.client.submit_async(pattern)
		self._report(outcome)

		return outcome

	def submit (self) -> hexpattern.client.SubmitOutcome:

		"""Submit the current pattern and wait for the outcome (blocking)."""

		outcome = self.client.submit(self.pattern())
		self._report(outcome)

		return outcome

	def _report (self, outcome: hexpattern.client.SubmitOutcome) -> None:

		if isinstance(outcome, hexpattern.client.Ack):
			logger.info("Pattern sent successfully")
			self.events.emit("sent", outcome)
		else:
			logger.warning(f"Error sending pattern: {outcome.reason}")
			self.events.emit("send_failed", outcome)

	# ------------------------------------------------------------------
	# Preview
	# ------------------------------------------------------------------

	def display (self, enabled: bool = True, track_bars: bool = True) -> None:

		"""
		Enable or disable the live terminal preview shown during ``play()``.

		Parameters:
			enabled: Whether to show the preview (default True).
			track_bars: Also draw the selected channel's segments as bars.
		"""

		if enabled:
			self._display = hexpattern.display.Display(self, track_bars=track_bars)
		else:
			self._display = None

	def web_ui (self, port: int = 8765) -> None:

		"""Serve the render surface and gesture hooks over WebSocket during ``play()``."""

		self._web_ui = hexpattern.web_ui.WebUI(self, port=port)

	def play (self) -> None:

		"""
		Run the looping preview until interrupted (Ctrl+C or SIGTERM).
		"""

		try:
			asyncio.run(self._run())

		except KeyboardInterrupt:
			pass

	def stop (self) -> None:

		"""Ask a running ``play()`` to finish."""

		if self._stop_event is not None:
			self._stop_event.set()

	async def _run (self) -> None:

		"""
		Async entry point: tick the preview and serve the optional surfaces until stopped.
		"""

		self._stop_event = asyncio.Event()
		loop = asyncio.get_running_loop()

		handled_signals: typing.List[signal.Signals] = []

		for sig in (signal.SIGINT, signal.SIGTERM):
			try:
				loop.add_signal_handler(sig, self._stop_event.set)
				handled_signals.append(sig)
			except (NotImplementedError, RuntimeError):
				logger.debug(f"Cannot install handler for {sig.name} on this platform")

		playback = hexpattern.playback.PlaybackLoop(self.scheduler, self.events, tick_ms=self.tick_ms)
		display = self._display
		display_listening = False

		try:
			if display is not None:
				display.start()
				self.events.on("frame", display.update)
				display_listening = True

			if self._web_ui is not None:
				await self._web_ui.start()

			logger.info("Previewing pattern. Press Ctrl+C to stop.")

			await playback.start()
			await self._stop_event.wait()

		finally:
			# Each stage runs even if an earlier one raises.
			try:
				await playback.stop()

				if self._send_tasks:
					await asyncio.wait(set(self._send_tasks))

			finally:
				try:
					if self._web_ui is not None:
						await self._web_ui.stop()

				finally:
					try:
						if display is not None:
							if display_listening:
								self.events.off("frame", display.update)
							display.stop()

					finally:
						for sig in handled_signals:
							loop.remove_signal_handler(sig)

						self._stop_event = None
