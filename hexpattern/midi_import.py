"""Build motor tracks from the note velocities of a standard MIDI file.

Each selected MIDI track drives one channel.  The velocity of a note-on holds
until the next note-on in the same track, so the track becomes a sequence of
(duration, speed) segments: the time between note-ons becomes the duration
and the velocity (0-127) becomes the speed percent.  Note-ons with velocity 0
count as events too and stop the motor.

```python
tracks = hexpattern.midi_import.read_velocity_segments("song.mid")
editor.load_midi("song.mid")
```
"""

import logging
import typing

import mido

import hexpattern.config
import hexpattern.constants
import hexpattern.gesture


logger = logging.getLogger(__name__)

DEFAULT_TEMPO = 500000  # Microseconds per beat (120 BPM)
MAX_VELOCITY = 127


def _find_tempo (midi_file: mido.MidiFile) -> int:

	"""Return the first set_tempo value in the file, or the MIDI default."""

	for track in midi_file.tracks:
		for message in track:
			if message.is_meta and message.type == "set_tempo":
				return int(message.tempo)

	return DEFAULT_TEMPO


def _note_on_events (track: mido.MidiTrack) -> typing.List[typing.Tuple[int, int]]:

	"""Return (absolute_tick, velocity) for every note-on in a track."""

	events: typing.List[typing.Tuple[int, int]] = []
	tick = 0

	for message in track:
		tick += message.time

		if message.type == "note_on":
			events.append((tick, message.velocity))

	return events


def velocity_to_percent (velocity: int) -> int:

	"""Scale a MIDI velocity (0-127) to a speed percent (0-100)."""

	return hexpattern.gesture.round_half_up(velocity * hexpattern.constants.MAX_SPEED_PERCENT / MAX_VELOCITY)


def track_segments (track: mido.MidiTrack, ticks_per_beat: int, tempo: int = DEFAULT_TEMPO) -> typing.List[typing.Tuple[int, int]]:

	"""
	Convert one MIDI track into (duration_ms, speed_percent) pairs.

	Simultaneous note-ons collapse into one event carrying the last velocity.
	Durations are clamped to the editor's 100-30000 ms range.
	"""

	events = _note_on_events(track)
	segments: typing.List[typing.Tuple[int, int]] = []

	for (tick, velocity), (next_tick, _) in zip(events, events[1:]):

		if next_tick == tick:
			continue

		seconds = mido.tick2second(next_tick - tick, ticks_per_beat, tempo)
		duration_ms = int(round(seconds * 1000))
		duration_ms = max(hexpattern.constants.MIN_DURATION_MS, min(hexpattern.constants.MAX_DURATION_MS, duration_ms))

		segments.append((duration_ms, velocity_to_percent(velocity)))

	return segments


def read_velocity_segments (
	path: str,
	track_numbers: typing.Sequence[int] = hexpattern.config.DEFAULT_MIDI_TRACKS
) -> typing.Dict[int, typing.List[typing.Tuple[int, int]]]:

	"""
	Read a MIDI file and return segments per channel.

	Parameters:
		path: Standard MIDI file to read.
		track_numbers: 1-based MIDI track numbers, one per channel starting at
			channel 0.  At most seven are used.

	Returns:
		``{channel: [(duration_ms, speed_percent), ...]}`` for every channel
		that was given a track number.  Missing tracks yield an empty list.
	"""

	midi_file = mido.MidiFile(path)
	tempo = _find_tempo(midi_file)
	result: typing.Dict[int, typing.List[typing.Tuple[int, int]]] = {}

	if len(track_numbers) > hexpattern.constants.CHANNEL_COUNT:
		logger.warning(f"Only the first {hexpattern.constants.CHANNEL_COUNT} of {len(track_numbers)} MIDI tracks are used")

	for channel, track_number in zip(hexpattern.constants.CHANNELS, track_numbers):

		index = track_number - 1

		if index < 0 or index >= len(midi_file.tracks):
			logger.warning(f"{path} has no track {track_number}; channel {channel} left empty")
			result[channel] = []
			continue

		result[channel] = track_segments(midi_file.tracks[index], midi_file.ticks_per_beat, tempo)

	logger.info(f"Imported {sum(len(s) for s in result.values())} segments from {path}")

	return result
