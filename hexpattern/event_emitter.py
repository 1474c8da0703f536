import asyncio
import inspect
import logging
import typing


logger = logging.getLogger(__name__)

CallbackType = typing.Callable[..., typing.Any]


class EventEmitter:

	"""
	Named event registry for editor notifications.

	Listeners run synchronously in registration order.  Coroutine listeners are
	scheduled on the running loop as tasks, so a slow async listener never
	holds up the playback tick that emitted the event.
	"""

	def __init__ (self) -> None:

		self._listeners: typing.Dict[str, typing.List[CallbackType]] = {}
		self._tasks: typing.Set[asyncio.Task] = set()

	def on (self, event_name: str, callback: CallbackType) -> CallbackType:

		"""
		Register a callback for an event name and return it.
		"""

		self._listeners.setdefault(event_name, []).append(callback)

		return callback

	def off (self, event_name: str, callback: CallbackType) -> None:

		"""
		Unregister a previously registered callback.

		Raises ``ValueError`` if the callback is not registered for the event.
		"""

		if callback not in self._listeners.get(event_name, []):
			raise ValueError(f"Callback not registered for event {event_name!r}")

		self._listeners[event_name].remove(callback)

	def listener_count (self, event_name: str) -> int:

		"""Number of callbacks registered for an event."""

		return len(self._listeners.get(event_name, []))

	def emit (self, event_name: str, *args: typing.Any, **kwargs: typing.Any) -> None:

		"""
		Call every listener for an event.

		Async listeners need a running event loop; emitting to one without a loop
		raises ``RuntimeError``.
		"""

		for callback in list(self._listeners.get(event_name, [])):

			if inspect.iscoroutinefunction(callback):
				task = asyncio.get_running_loop().create_task(callback(*args, **kwargs))
				self._tasks.add(task)
				task.add_done_callback(self._task_done)

			else:
				callback(*args, **kwargs)

	def _task_done (self, task: asyncio.Task) -> None:

		"""Forget a finished listener task and log its failure, if any."""

		self._tasks.discard(task)

		if task.cancelled():
			return

		exc = task.exception()

		if exc is not None:
			logger.error(f"Error in async event listener: {exc!r}", exc_info=exc)
