"""YAML configuration for the editor and its command-line entry point.

Every key is optional; missing sections fall back to the defaults below::

	server:
	  endpoint: http://192.168.0.40:8080/pattern
	  timeout_seconds: 5
	playback:
	  tick_ms: 16
	display:
	  enabled: true
	  track_bars: true
	web_ui:
	  enabled: false
	  port: 8765
	logging:
	  level: INFO
	midi:
	  tracks: [9, 12, 3, 13, 14, 7, 15]
"""

import dataclasses
import logging
import os
import typing

import yaml

import hexpattern.constants


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.yaml"
DEFAULT_MIDI_TRACKS = (9, 12, 3, 13, 14, 7, 15)


@dataclasses.dataclass
class EditorConfig:

	"""Settings read from the config file."""

	endpoint: str = hexpattern.constants.DEFAULT_ENDPOINT
	timeout_seconds: float = hexpattern.constants.DEFAULT_TIMEOUT_SECONDS
	tick_ms: int = hexpattern.constants.TICK_MS
	display: bool = True
	track_bars: bool = True
	web_ui: bool = False
	web_ui_port: int = 8765
	log_level: str = "INFO"
	midi_tracks: typing.Tuple[int, ...] = DEFAULT_MIDI_TRACKS

	@classmethod
	def from_dict (cls, data: typing.Optional[typing.Dict[str, typing.Any]]) -> "EditorConfig":

		"""Build a config from the nested dict produced by ``load_config()``."""

		data = data or {}

		server = data.get("server") or {}
		playback = data.get("playback") or {}
		display = data.get("display") or {}
		web_ui = data.get("web_ui") or {}
		log = data.get("logging") or {}
		midi = data.get("midi") or {}

		config = cls(
			endpoint = str(server.get("endpoint", cls.endpoint)),
			timeout_seconds = float(server.get("timeout_seconds", cls.timeout_seconds)),
			tick_ms = int(playback.get("tick_ms", cls.tick_ms)),
			display = bool(display.get("enabled", cls.display)),
			track_bars = bool(display.get("track_bars", cls.track_bars)),
			web_ui = bool(web_ui.get("enabled", cls.web_ui)),
			web_ui_port = int(web_ui.get("port", cls.web_ui_port)),
			log_level = str(log.get("level", cls.log_level)).upper(),
			midi_tracks = tuple(int(track) for track in midi.get("tracks", DEFAULT_MIDI_TRACKS))
		)

		if config.tick_ms <= 0:
			raise ValueError(f"playback.tick_ms must be positive, got {config.tick_ms}")

		if config.timeout_seconds <= 0:
			raise ValueError(f"server.timeout_seconds must be positive, got {config.timeout_seconds}")

		return config


def load_config (config_path: str = DEFAULT_CONFIG_PATH) -> typing.Dict[str, typing.Any]:

	"""
	Load configuration from a YAML file.
	"""

	if not os.path.exists(config_path):
		logger.warning(f"Config file {config_path} not found. Using defaults.")
		return {}

	with open(config_path, "r") as f:
		data = yaml.safe_load(f)

	if data is None:
		return {}

	if not isinstance(data, dict):
		raise ValueError(f"Config file {config_path} must contain a mapping at the top level")

	return data
