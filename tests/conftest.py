import typing

import pytest
import requests

import hexpattern.client
import hexpattern.editor
import hexpattern.segments
import hexpattern.serializer


class FixedClock:

	"""Clock stub that returns a settable time in seconds."""

	def __init__ (self, now: float = 1.0) -> None:

		self.now = now

	def __call__ (self) -> float:

		return self.now


class FakeResponse:

	"""Minimal stand-in for ``requests.Response``."""

	def __init__ (self, status_code: int = 200, text: str = "Pattern received successfully") -> None:

		self.status_code = status_code
		self.text = text

	def raise_for_status (self) -> None:

		"""Raise HTTPError for 4xx/5xx like the real response."""

		if self.status_code >= 400:
			raise requests.HTTPError(f"{self.status_code} Error", response=self)


class FakePost:

	"""Records calls made through ``requests.post`` and returns a canned result."""

	def __init__ (self, response: typing.Optional[FakeResponse] = None, error: typing.Optional[Exception] = None) -> None:

		self.response = response if response is not None else FakeResponse()
		self.error = error
		self.calls: typing.List[typing.Dict[str, typing.Any]] = []

	def __call__ (self, url: str, json: typing.Any = None, timeout: typing.Optional[float] = None, **kwargs: typing.Any) -> FakeResponse:

		self.calls.append({"url": url, "json": json, "timeout": timeout})

		if self.error is not None:
			raise self.error

		return self.response


class RecordingClient (hexpattern.client.ServerClient):

	"""ServerClient that records submitted patterns instead of using the network."""

	def __init__ (self, outcome: typing.Optional[hexpattern.client.SubmitOutcome] = None) -> None:

		super().__init__(endpoint="http://controller.test/pattern")
		self.outcome = outcome if outcome is not None else hexpattern.client.Ack(status_code=200, message="ok")
		self.submitted: typing.List[hexpattern.serializer.Pattern] = []

	def submit (self, pattern: hexpattern.serializer.Pattern) -> hexpattern.client.SubmitOutcome:

		self.submitted.append(pattern)
		return self.outcome


@pytest.fixture
def clock () -> FixedClock:

	"""A frozen clock; ids from it are bumped to stay unique."""

	return FixedClock()


@pytest.fixture
def store (clock: FixedClock) -> hexpattern.segments.SegmentStore:

	"""An empty store with deterministic ids (1000, 1001, ...)."""

	return hexpattern.segments.SegmentStore(id_clock=hexpattern.segments.SegmentIdClock(clock))


@pytest.fixture
def client () -> RecordingClient:

	"""A client that always acknowledges."""

	return RecordingClient()


@pytest.fixture
def editor (client: RecordingClient, clock: FixedClock) -> hexpattern.editor.Editor:

	"""An editor wired to the recording client, without display or web UI."""

	return hexpattern.editor.Editor(client=client, id_clock=hexpattern.segments.SegmentIdClock(clock))


@pytest.fixture
def fake_post (monkeypatch: pytest.MonkeyPatch) -> FakePost:

	"""Patch ``requests.post`` with a recorder that answers 200."""

	fake = FakePost()
	monkeypatch.setattr(requests, "post", fake)
	return fake
