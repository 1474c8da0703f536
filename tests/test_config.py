import pytest

import hexpattern.config
import hexpattern.constants


def test_missing_file_gives_defaults (tmp_path) -> None:

	"""No config file means an empty mapping and default settings."""

	data = hexpattern.config.load_config(str(tmp_path / "absent.yaml"))
	config = hexpattern.config.EditorConfig.from_dict(data)

	assert data == {}
	assert config.endpoint == hexpattern.constants.DEFAULT_ENDPOINT
	assert config.tick_ms == 16
	assert config.display is True
	assert config.web_ui is False
	assert config.midi_tracks == (9, 12, 3, 13, 14, 7, 15)


def test_empty_file_gives_defaults (tmp_path) -> None:

	"""An empty YAML document is treated as no settings."""

	path = tmp_path / "config.yaml"
	path.write_text("")

	assert hexpattern.config.load_config(str(path)) == {}


def test_load_nested_sections (tmp_path) -> None:

	"""Every section maps onto the flat config."""

	path = tmp_path / "config.yaml"
	path.write_text(
		"server:\n"
		"  endpoint: http://10.1.1.1:9000/pattern\n"
		"  timeout_seconds: 2\n"
		"playback:\n"
		"  tick_ms: 20\n"
		"display:\n"
		"  enabled: false\n"
		"  track_bars: false\n"
		"web_ui:\n"
		"  enabled: true\n"
		"  port: 9999\n"
		"logging:\n"
		"  level: debug\n"
		"midi:\n"
		"  tracks: [1, 2]\n"
	)

	config = hexpattern.config.EditorConfig.from_dict(hexpattern.config.load_config(str(path)))

	assert config.endpoint == "http://10.1.1.1:9000/pattern"
	assert config.timeout_seconds == 2.0
	assert config.tick_ms == 20
	assert config.display is False
	assert config.track_bars is False
	assert config.web_ui is True
	assert config.web_ui_port == 9999
	assert config.log_level == "DEBUG"
	assert config.midi_tracks == (1, 2)


def test_non_mapping_file_raises (tmp_path) -> None:

	"""A YAML list at the top level is not a config."""

	path = tmp_path / "config.yaml"
	path.write_text("- a\n- b\n")

	with pytest.raises(ValueError):
		hexpattern.config.load_config(str(path))


@pytest.mark.parametrize("data", [
	{"playback": {"tick_ms": 0}},
	{"server": {"timeout_seconds": -1}},
])
def test_invalid_values_raise (data: dict) -> None:

	"""Ticks and timeouts must be positive."""

	with pytest.raises(ValueError):
		hexpattern.config.EditorConfig.from_dict(data)
