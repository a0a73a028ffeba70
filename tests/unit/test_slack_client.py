import threading
from unittest.mock import MagicMock

import pytest
from slack_sdk.errors import SlackApiError, SlackRequestError
from tenacity import wait_none

from wap_bot.errors import CancelledError, SlackOperationError
from wap_bot.schemas.links import SummaryArtifact, ThreadMessage
from wap_bot.slack.client import SlackClientWrapper


@pytest.fixture
def web_client():
    return MagicMock()


@pytest.fixture
def wrapper(web_client):
    return SlackClientWrapper(web_client, retry_wait=wait_none())


def test_post_ephemeral_success(wrapper, web_client):
    """
    WHY: Verify that our wrapper calls the official Slack SDK with the right parameters.
    HOW: Call `post_ephemeral` with sample data against a mocked WebClient.
    EXPECTED: `chat_postEphemeral` is called once with `channel`, `user` and `text` exactly as passed.
    """
    web_client.chat_postEphemeral.return_value = {"ok": True}

    wrapper.post_ephemeral("C1", "U1", "Hello World")

    web_client.chat_postEphemeral.assert_called_once_with(channel="C1", user="U1", text="Hello World")


def test_get_thread_replies(wrapper, web_client):
    web_client.conversations_replies.return_value = {
        "ok": True,
        "messages": [
            {"type": "message", "text": "<@UBOT> summarize", "user": "U1", "ts": "1.1"},
            {"type": "message", "text": "https://youtu.be/abc", "username": "dj", "ts": "1.2", "blocks": []},
            {"type": "message", "ts": "1.3", "subtype": "bot_message"},
        ],
    }

    messages = wrapper.get_thread_replies("C1", "1.1")

    web_client.conversations_replies.assert_called_once_with(channel="C1", ts="1.1", limit=1000)
    assert [m.text for m in messages] == ["<@UBOT> summarize", "https://youtu.be/abc", ""]
    assert all(isinstance(m, ThreadMessage) for m in messages)
    assert messages[1].author == "dj"


def test_get_thread_replies_truncated_warns(wrapper, web_client, caplog):
    web_client.conversations_replies.return_value = {"ok": True, "messages": [], "has_more": True}
    assert wrapper.get_thread_replies("C1", "1.1", limit=10) == []
    assert any("more than 10 replies" in r.getMessage() for r in caplog.records)


@pytest.fixture
def artifact():
    return SummaryArtifact(
        content=b"Title;Spotify URL;YouTube URL;YouTube Music URL\n",
        filename="C1-1.1.csv",
        title="C1-1.1.csv",
        initial_comment="Found 0 music URLs in this thread",
        channel="C1",
        thread_ts="1.1",
        row_count=0,
    )


def test_upload_artifact(wrapper, web_client, artifact):
    wrapper.upload_artifact(artifact)

    web_client.files_upload_v2.assert_called_once_with(
        channel="C1",
        thread_ts="1.1",
        content=artifact.content,
        filename="C1-1.1.csv",
        title="C1-1.1.csv",
        initial_comment="Found 0 music URLs in this thread",
    )


def test_rate_limit_is_retried(wrapper, web_client):
    """
    WHY: Slack APIs often rate limit bots. We need to retry automatically rather than fail.
    HOW: Raise a `ratelimited` SlackApiError on the first call, succeed on the second. No wait between attempts.
    EXPECTED: The call succeeds after exactly two attempts.
    """
    web_client.chat_postEphemeral.side_effect = [
        SlackApiError("ratelimited", {"ok": False, "error": "ratelimited"}),
        {"ok": True},
    ]

    assert wrapper.post_ephemeral("C1", "U1", "hi") == {"ok": True}
    assert web_client.chat_postEphemeral.call_count == 2


def test_rate_limit_gives_up_after_attempts(wrapper, web_client):
    web_client.conversations_replies.side_effect = SlackApiError("ratelimited", {"ok": False, "error": "ratelimited"})

    with pytest.raises(SlackOperationError) as exc_info:
        wrapper.get_thread_replies("C1", "1.1")

    assert web_client.conversations_replies.call_count == 3
    assert exc_info.value.reason == "ratelimited"


def test_api_error_is_wrapped_without_retry(wrapper, web_client):
    """
    WHY: Callers log Slack failures with the operation and thread they were working on.
    HOW: Make `conversations_replies` fail with `invalid_auth`.
    EXPECTED: One attempt only; SlackOperationError names the operation, channel and thread, chained to the SDK error.
    """
    web_client.conversations_replies.side_effect = SlackApiError("auth_error", {"ok": False, "error": "invalid_auth"})

    with pytest.raises(SlackOperationError) as exc_info:
        wrapper.get_thread_replies("C1", "1.1")

    err = exc_info.value
    assert web_client.conversations_replies.call_count == 1
    assert err.operation == "slack.get_thread_replies"
    assert err.channel == "C1"
    assert err.thread_ts == "1.1"
    assert err.reason == "invalid_auth"
    assert isinstance(err.__cause__, SlackApiError)


def test_transport_error_is_wrapped(wrapper, web_client, artifact):
    web_client.files_upload_v2.side_effect = SlackRequestError("connection reset")

    with pytest.raises(SlackOperationError, match="slack.upload_artifact"):
        wrapper.upload_artifact(artifact)


def test_cancelled_before_call(web_client):
    cancel = threading.Event()
    cancel.set()
    wrapper = SlackClientWrapper(web_client, cancel=cancel, retry_wait=wait_none())

    with pytest.raises(CancelledError):
        wrapper.post_ephemeral("C1", "U1", "hi")

    web_client.chat_postEphemeral.assert_not_called()
