import asyncio
import dataclasses
import logging
import math
import time
import typing

import hexpattern.constants
import hexpattern.event_emitter
import hexpattern.segments


logger = logging.getLogger(__name__)


@dataclasses.dataclass
class ChannelPlayhead:

	"""
	Cyclic playback position of one channel.
	"""

	segment_index: int = 0
	elapsed_ms: int = 0


@dataclasses.dataclass (frozen=True)
class ChannelFrame:

	"""
	What a renderer needs to draw one channel for one tick.
	"""

	channel: int
	segment_index: int
	elapsed_ms: int
	progress: float					# 0 <= progress < 1 within the evaluated segment
	physical_speed: float			# Controller units, 0-6
	angle: float					# Radians, may exceed one revolution
	idle: bool = False

	@property
	def render_angle (self) -> float:

		"""The angle wrapped to [0, 2*pi) for drawing."""

		return self.angle % math.tau


class PlaybackScheduler:

	"""
	Advances every channel's looping animation from a shared tick.

	Each ``tick()`` is one synchronous pass over all seven channels.  Channels
	are independent: a channel with an empty track stays idle while the others
	keep moving.  The scheduler reads the store's current tracks on every tick,
	so edits show up without restarting playback.

	Crossing a segment boundary resets elapsed time to zero and drops the
	overshoot, so a cycle drifts by up to one tick.
	"""

	def __init__ (self, store: hexpattern.segments.SegmentStore) -> None:

		self._store = store
		self._playheads: typing.Dict[int, ChannelPlayhead] = {}
		self._frames: typing.List[ChannelFrame] = []
		self.tick_count = 0

		self.restart()

	def restart (self) -> None:

		"""Put every channel back at the start of its first segment."""

		self._playheads = {channel: ChannelPlayhead() for channel in hexpattern.constants.CHANNELS}
		self._frames = [self._idle_frame(channel) for channel in hexpattern.constants.CHANNELS]
		self.tick_count = 0

	def playhead (self, channel: int) -> ChannelPlayhead:

		"""Return the playhead for a channel."""

		return self._playheads[channel]

	def frames (self) -> typing.List[ChannelFrame]:

		"""Frames computed by the most recent tick, in channel order."""

		return list(self._frames)

	def tick (self, tick_ms: int = hexpattern.constants.TICK_MS) -> typing.List[ChannelFrame]:

		"""
		Advance all channels by one tick and return their frames.
		"""

		self._frames = [self._advance(channel, tick_ms) for channel in hexpattern.constants.CHANNELS]
		self.tick_count += 1

		return list(self._frames)

	def _advance (self, channel: int, tick_ms: int) -> ChannelFrame:

		track = self._store.track(channel)
		playhead = self._playheads[channel]

		if not track:
			return self._idle_frame(channel)

		# The track may have shrunk since the last tick.
		if playhead.segment_index >= len(track):
			playhead.segment_index = 0
			playhead.elapsed_ms = 0

		segment = track[playhead.segment_index]
		playhead.elapsed_ms += tick_ms

		if playhead.elapsed_ms >= segment.duration_ms:
			playhead.elapsed_ms = 0
			playhead.segment_index = (playhead.segment_index + 1) % len(track)

		if segment.duration_ms > 0:
			progress = playhead.elapsed_ms / segment.duration_ms
		else:
			progress = 0.0

		physical_speed = hexpattern.constants.to_physical_speed(segment.speed_percent)

		return ChannelFrame(
			channel = channel,
			segment_index = playhead.segment_index,
			elapsed_ms = playhead.elapsed_ms,
			progress = progress,
			physical_speed = physical_speed,
			angle = progress * physical_speed * math.tau
		)

	def _idle_frame (self, channel: int) -> ChannelFrame:

		playhead = self._playheads.get(channel, ChannelPlayhead())

		return ChannelFrame(
			channel = channel,
			segment_index = playhead.segment_index,
			elapsed_ms = playhead.elapsed_ms,
			progress = 0.0,
			physical_speed = 0.0,
			angle = 0.0,
			idle = True
		)


class PlaybackLoop:

	"""
	Drives a PlaybackScheduler from the asyncio clock.

	Ticks are spaced ``tick_ms`` apart against a ``time.perf_counter()`` target,
	so a late wakeup shortens the next sleep instead of accumulating drift.
	Each tick emits a ``"frame"`` event carrying the list of ChannelFrames.
	"""

	def __init__ (
		self,
		scheduler: PlaybackScheduler,
		events: hexpattern.event_emitter.EventEmitter,
		tick_ms: int = hexpattern.constants.TICK_MS
	) -> None:

		if tick_ms <= 0:
			raise ValueError("Tick length must be positive")

		self.scheduler = scheduler
		self.events = events
		self.tick_ms = tick_ms
		self.running = False
		self.task: typing.Optional[asyncio.Task] = None

	async def start (self) -> None:

		"""Start ticking in a background task."""

		if self.running:
			return

		self.running = True
		self.scheduler.restart()
		self.task = asyncio.create_task(self._run_loop())

		logger.info(f"Playback started ({self.tick_ms} ms tick)")

	async def stop (self) -> None:

		"""Stop ticking and wait for the loop to finish."""

		if not self.running:
			return

		self.running = False

		if self.task:
			self.task.cancel()
			try:
				await self.task
			except asyncio.CancelledError:
				pass
			except Exception:
				logger.exception("Playback loop failed")
			self.task = None

		logger.info("Playback stopped")

	async def _run_loop (self) -> None:

		seconds_per_tick = self.tick_ms / 1000.0
		next_tick_time = time.perf_counter()

		while self.running:

			frames = self.scheduler.tick(self.tick_ms)

			# A failing listener must not stop the preview.
			try:
				self.events.emit("frame", frames)
			except Exception:
				logger.exception("Error in frame listener")

			next_tick_time += seconds_per_tick
			sleep_time = next_tick_time - time.perf_counter()

			if sleep_time > 0:
				await asyncio.sleep(sleep_time)
			else:
				# Running late: resynchronise rather than bursting to catch up.
				next_tick_time = time.perf_counter()
				await asyncio.sleep(0)
