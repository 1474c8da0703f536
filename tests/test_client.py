import pytest
import requests

import hexpattern.client
import hexpattern.constants
import hexpattern.serializer

import conftest


def _pattern () -> hexpattern.serializer.Pattern:

	return hexpattern.serializer.parse({"patterns": [{"motorId": 0, "segments": [{"duration": 1000, "speed": 3.0}]}]})


def test_submit_posts_wire_json (fake_post: conftest.FakePost) -> None:

	"""The pattern is POSTed as JSON to the endpoint with the timeout."""

	client = hexpattern.client.ServerClient(endpoint="http://controller.test/pattern", timeout=2.5)

	outcome = client.submit(_pattern())

	assert outcome == hexpattern.client.Ack(status_code=200, message="Pattern received successfully")
	assert fake_post.calls == [{
		"url": "http://controller.test/pattern",
		"json": {"patterns": [{"motorId": 0, "segments": [{"duration": 1000, "speed": 3.0}]}]},
		"timeout": 2.5
	}]


def test_connection_error_becomes_transport_error (fake_post: conftest.FakePost) -> None:

	"""An unreachable controller is reported, not raised."""

	fake_post.error = requests.ConnectionError("connection refused")

	outcome = hexpattern.client.ServerClient().submit(_pattern())

	assert isinstance(outcome, hexpattern.client.TransportError)
	assert "connection refused" in outcome.reason
	assert outcome.status_code is None


def test_timeout_becomes_transport_error (fake_post: conftest.FakePost) -> None:

	"""A timeout is a transport failure like any other."""

	fake_post.error = requests.Timeout("timed out")

	outcome = hexpattern.client.ServerClient().submit(_pattern())

	assert isinstance(outcome, hexpattern.client.TransportError)


def test_http_error_status_is_kept (fake_post: conftest.FakePost) -> None:

	"""A non-2xx answer is a failure carrying the status code."""

	fake_post.response = conftest.FakeResponse(status_code=500, text="boom")

	outcome = hexpattern.client.ServerClient().submit(_pattern())

	assert isinstance(outcome, hexpattern.client.TransportError)
	assert outcome.status_code == 500


def test_submit_is_attempted_once (fake_post: conftest.FakePost) -> None:

	"""Failures are not retried."""

	fake_post.error = requests.ConnectionError("down")

	hexpattern.client.ServerClient().submit(_pattern())

	assert len(fake_post.calls) == 1


def test_session_is_used_when_given () -> None:

	"""A supplied session sends the request instead of the module function."""

	fake = conftest.FakePost()
	session = requests.Session()
	session.post = fake

	client = hexpattern.client.ServerClient(endpoint="http://controller.test/pattern", session=session)
	outcome = client.submit(_pattern())

	assert isinstance(outcome, hexpattern.client.Ack)
	assert len(fake.calls) == 1


@pytest.mark.asyncio
async def test_submit_async (fake_post: conftest.FakePost) -> None:

	"""The async variant returns the same outcome from a worker thread."""

	outcome = await hexpattern.client.ServerClient().submit_async(_pattern())

	assert isinstance(outcome, hexpattern.client.Ack)
	assert fake_post.calls[0]["url"] == hexpattern.constants.DEFAULT_ENDPOINT
