"""HTTP submission of patterns to the motor controller.

The controller accepts a JSON POST of the wire format and answers with an
opaque acknowledgement.  A submission is attempted exactly once; failures are
logged and handed back to the caller, never retried.
"""

import asyncio
import dataclasses
import logging
import typing

import requests

import hexpattern.constants
import hexpattern.serializer


logger = logging.getLogger(__name__)


@dataclasses.dataclass (frozen=True)
class Ack:

	"""The controller accepted the pattern."""

	status_code: int
	message: str = ""


@dataclasses.dataclass (frozen=True)
class TransportError:

	"""The pattern could not be delivered."""

	reason: str
	status_code: typing.Optional[int] = None


SubmitOutcome = typing.Union[Ack, TransportError]


class ServerClient:

	"""
	Posts serialized patterns to a configurable endpoint.
	"""

	def __init__ (
		self,
		endpoint: str = hexpattern.constants.DEFAULT_ENDPOINT,
		timeout: float = hexpattern.constants.DEFAULT_TIMEOUT_SECONDS,
		session: typing.Optional[requests.Session] = None
	) -> None:

		"""
		Parameters:
			endpoint: URL that receives the POST.
			timeout: Seconds to wait for the controller before giving up.
			session: Optional ``requests.Session`` to reuse connections.
		"""

		self.endpoint = endpoint
		self.timeout = timeout
		self._session = session

	def submit (self, pattern: hexpattern.serializer.Pattern) -> SubmitOutcome:

		"""
		Send one pattern and report the outcome.  Blocks until the controller answers.
		"""

		post = self._session.post if self._session is not None else requests.post

		try:
			response = post(self.endpoint, json=pattern.to_dict(), timeout=self.timeout)
			response.raise_for_status()

		except requests.HTTPError as exc:
			status = exc.response.status_code if exc.response is not None else None
			logger.error(f"Controller at {self.endpoint} rejected pattern: {exc}")
			return TransportError(reason=str(exc), status_code=status)

		except requests.RequestException as exc:
			logger.error(f"Could not send pattern to {self.endpoint}: {exc}")
			return TransportError(reason=str(exc))

		logger.info(f"Pattern sent to {self.endpoint} ({len(pattern.patterns)} motors)")

		return Ack(status_code=response.status_code, message=response.text)

	async def submit_async (self, pattern: hexpattern.serializer.Pattern) -> SubmitOutcome:

		"""Run ``submit()`` in a worker thread so the event loop keeps ticking."""

		return await asyncio.to_thread(self.submit, pattern)
