import argparse
import logging
import sys
import typing

import hexpattern.client
import hexpattern.config
import hexpattern.editor
import hexpattern.serializer


logger = logging.getLogger(__name__)


def build_parser () -> argparse.ArgumentParser:

	"""
	Command-line options for the editor.
	"""

	parser = argparse.ArgumentParser(prog="hexpattern", description="Compose, preview and send seven-motor patterns")
	parser.add_argument("--config", default=hexpattern.config.DEFAULT_CONFIG_PATH, help="YAML config file (default: config.yaml)")
	parser.add_argument("--endpoint", help="Controller URL, overrides server.endpoint")
	parser.add_argument("--pattern", help="Load a pattern JSON file")
	parser.add_argument("--midi", help="Import tracks from a MIDI file")
	parser.add_argument("--json", action="store_true", help="Print the pattern JSON and exit")
	parser.add_argument("--send", action="store_true", help="Send the pattern once and exit")

	return parser


def main (argv: typing.Optional[typing.List[str]] = None) -> int:

	"""
	Main entry point for the hexpattern application.
	"""

	args = build_parser().parse_args(argv)

	config = hexpattern.config.EditorConfig.from_dict(hexpattern.config.load_config(args.config))

	logging.basicConfig(level=getattr(logging, config.log_level, logging.INFO))

	if args.endpoint:
		config.endpoint = args.endpoint

	# One-shot modes never show the live preview.
	if args.json or args.send:
		config.display = False
		config.web_ui = False

	editor = hexpattern.editor.Editor.from_config(config)

	try:
		if args.pattern:
			with open(args.pattern, "r") as f:
				editor.load_pattern(f.read())

		if args.midi:
			editor.load_midi(args.midi, config.midi_tracks)

	except (OSError, hexpattern.serializer.PatternFormatError) as exc:
		logger.error(f"Could not load input: {exc}")
		return 2

	if args.json:
		print(editor.pattern_json())
		return 0

	if args.send:
		outcome = editor.submit()
		return 0 if isinstance(outcome, hexpattern.client.Ack) else 1

	logger.info("hexpattern starting...")
	editor.play()

	return 0


if __name__ == "__main__":
	sys.exit(main())
