"""WebSocket bridge between the editor and an external UI shell.

The shell draws the track view and the hexagon; this module feeds it the
render surface and takes its pointer and button events back.

Outgoing messages (JSON):

- ``{"type": "state", ...}`` ten times a second: frames, tracks, assignments,
  selection and the serialized pattern.
- ``{"type": "sent"}`` / ``{"type": "send_failed", "reason": ...}`` once per send.
- ``{"type": "error", "reason": ...}`` in reply to a bad command.

Incoming commands (JSON objects with a ``"type"``):

- ``select_channel {channel}``, ``select_segment {segment_id}``
- ``add_segment``, ``update_segment {segment_id, field, value}``,
  ``remove_segment {segment_id}``
- ``toggle_assignment {position}``
- ``pointer_down {segment_id, x, y, width, height, axis?}``,
  ``pointer_move {x, y}``, ``pointer_up``
- ``send``
"""

import asyncio
import json
import logging
import typing
import weakref

import websockets
import websockets.asyncio.server
import websockets.exceptions

import hexpattern.client
import hexpattern.gesture

if typing.TYPE_CHECKING:
	from hexpattern.editor import Editor


logger = logging.getLogger(__name__)


class CommandError (ValueError):

	"""Raised for a command the bridge cannot carry out."""


class WebUI:

	"""
	Background WebSocket server for the editor's render surface.
	"""

	def __init__ (self, editor: "Editor", port: int = 8765, host: str = "127.0.0.1", broadcast_interval: float = 0.1) -> None:

		self.editor_ref = weakref.ref(editor)
		self.port = port
		self.host = host
		self.broadcast_interval = broadcast_interval
		self._ws_server: typing.Optional[websockets.asyncio.server.Server] = None
		self._broadcast_task: typing.Optional[asyncio.Task] = None
		self._clients: typing.Set[websockets.asyncio.server.ServerConnection] = set()
		self._subscribed = False

	@property
	def bound_port (self) -> typing.Optional[int]:

		"""The port actually listened on (useful when started with port 0)."""

		if self._ws_server is None or not self._ws_server.sockets:
			return None

		return self._ws_server.sockets[0].getsockname()[1]

	async def start (self) -> None:

		"""Start the server and the broadcast loop."""

		editor = self.editor_ref()

		if editor is not None and not self._subscribed:
			editor.on_event("sent", self._on_sent)
			editor.on_event("send_failed", self._on_send_failed)
			self._subscribed = True

		self._ws_server = await websockets.asyncio.server.serve(self._handle_client, self.host, self.port)
		self._broadcast_task = asyncio.create_task(self._broadcast_loop())

		logger.info(f"Web UI bridge listening on ws://{self.host}:{self.bound_port}")

	async def stop (self) -> None:

		"""Stop broadcasting and close the server."""

		if self._broadcast_task:
			self._broadcast_task.cancel()
			try:
				await self._broadcast_task
			except asyncio.CancelledError:
				pass
			self._broadcast_task = None

		if self._ws_server:
			self._ws_server.close()
			await self._ws_server.wait_closed()
			self._ws_server = None

		editor = self.editor_ref()

		if editor is not None and self._subscribed:
			editor.events.off("sent", self._on_sent)
			editor.events.off("send_failed", self._on_send_failed)

		self._subscribed = False

	async def _handle_client (self, websocket: websockets.asyncio.server.ServerConnection) -> None:

		self._clients.add(websocket)

		try:
			async for message in websocket:
				reply = self.handle_message(message)

				if reply is not None:
					await websocket.send(json.dumps(reply))

		except websockets.exceptions.ConnectionClosed:
			pass

		finally:
			self._clients.discard(websocket)

	async def _broadcast_loop (self) -> None:

		while True:
			await asyncio.sleep(self.broadcast_interval)

			if not self._clients:
				continue

			editor = self.editor_ref()
			if editor is None:
				break

			self._broadcast(self.get_state(editor))

	def _broadcast (self, payload: typing.Dict[str, typing.Any]) -> None:

		if self._clients:
			websockets.broadcast(self._clients, json.dumps(payload))

	def _on_sent (self, ack: hexpattern.client.Ack) -> None:

		self._broadcast({"type": "sent", "message": ack.message})

	def _on_send_failed (self, error: hexpattern.client.TransportError) -> None:

		self._broadcast({"type": "send_failed", "reason": error.reason})

	def get_state (self, editor: "Editor") -> typing.Dict[str, typing.Any]:

		"""Snapshot of everything the shell needs to draw."""

		return {
			"type": "state",
			"tick": editor.scheduler.tick_count,
			"selection": {
				"channel": editor.selection.selected_channel,
				"segment_id": editor.selection.selected_segment_id
			},
			"frames": [
				{
					"channel": frame.channel,
					"segment_index": frame.segment_index,
					"progress": frame.progress,
					"speed": frame.physical_speed,
					"angle": frame.render_angle,
					"idle": frame.idle
				}
				for frame in editor.scheduler.frames()
			],
			"tracks": [
				[{"id": s.id, "duration": s.duration_ms, "speed": s.speed_percent} for s in track]
				for track in editor.store.tracks()
			],
			"assignments": {str(position): channel for position, channel in editor.assignments.as_dict().items()},
			"pattern": editor.pattern().to_dict()
		}

	def handle_message (self, message: typing.Union[str, bytes]) -> typing.Optional[typing.Dict[str, typing.Any]]:

		"""
		Apply one incoming command.

		Returns an error reply for malformed or unknown commands, otherwise None.
		"""

		try:
			command = json.loads(message)
			if not isinstance(command, dict):
				raise CommandError("Command must be a JSON object")
			self.handle_command(command)

		except (json.JSONDecodeError, CommandError, ValueError, KeyError, TypeError) as exc:
			logger.warning(f"Rejected web UI command {message!r}: {exc}")
			return {"type": "error", "reason": str(exc)}

		return None

	def handle_command (self, command: typing.Dict[str, typing.Any]) -> None:

		"""Dispatch a decoded command to the editor."""

		editor = self.editor_ref()

		if editor is None:
			raise CommandError("Editor is gone")

		kind = command.get("type")

		if kind == "select_channel":
			editor.select_channel(int(command["channel"]))

		elif kind == "select_segment":
			segment_id = command.get("segment_id")
			editor.select_segment(None if segment_id is None else int(segment_id))

		elif kind == "add_segment":
			editor.add_segment()

		elif kind == "update_segment":
			editor.update_segment(int(command["segment_id"]), str(command["field"]), command["value"])

		elif kind == "remove_segment":
			editor.remove_segment(int(command["segment_id"]))

		elif kind == "toggle_assignment":
			editor.toggle_assignment(int(command["position"]))

		elif kind == "pointer_down":
			axis_name = command.get("axis")
			axis = hexpattern.gesture.Axis(axis_name) if axis_name is not None else None
			editor.pointer_down(
				int(command["segment_id"]),
				float(command["x"]),
				float(command["y"]),
				float(command["width"]),
				float(command["height"]),
				axis = axis
			)

		elif kind == "pointer_move":
			editor.pointer_move(float(command["x"]), float(command["y"]))

		elif kind == "pointer_up":
			editor.pointer_up()

		elif kind == "send":
			editor.send()

		else:
			raise CommandError(f"Unknown command type {kind!r}")
