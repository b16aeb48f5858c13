"""Tests for the PostHog transport."""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from meili_analytics.telemetry import Identify, NullTransport, PostHogTransport, Track, Transport
from meili_analytics.telemetry.config import DEFAULT_POSTHOG_HOST
from meili_analytics.telemetry.transport import to_posthog_message

TS = datetime(2021, 5, 3, 12, 0, tzinfo=timezone.utc)


def test_identify_message():
    message = to_posthog_message("abc-123", Identify(traits={"Nb CPUs": 8}, timestamp=TS))

    assert message == {
        "event": "$identify",
        "distinct_id": "abc-123",
        "properties": {"$set": {"Nb CPUs": 8}},
        "timestamp": TS.isoformat(),
    }


def test_track_message():
    message = to_posthog_message("abc-123", Track(event="Search", properties={"q": 1}, timestamp=TS))

    assert message["event"] == "Search"
    assert message["distinct_id"] == "abc-123"
    assert message["properties"] == {"q": 1}


def test_transports_satisfy_protocol():
    assert isinstance(PostHogTransport("phc_test"), Transport)
    assert isinstance(NullTransport(), Transport)


class TestPostHogTransport:
    """Tests for batch sending."""

    @pytest.mark.asyncio
    @patch("meili_analytics.telemetry.transport.batch_post")
    async def test_send_posts_one_batch(self, mock_batch_post):
        transport = PostHogTransport("phc_test")

        result = await transport.send("abc-123", [Identify(traits={}), Track(event="Search")])

        assert result is True
        mock_batch_post.assert_called_once()
        args, kwargs = mock_batch_post.call_args
        assert args == ("phc_test",)
        assert kwargs["host"] == DEFAULT_POSTHOG_HOST
        assert [m["event"] for m in kwargs["batch"]] == ["$identify", "Search"]

    @pytest.mark.asyncio
    @patch("meili_analytics.telemetry.transport.batch_post", side_effect=ConnectionError("down"))
    async def test_send_failure_returns_false(self, mock_batch_post):
        transport = PostHogTransport(api_key="phc_test", host="https://posthog.example.com")

        result = await transport.send("abc-123", [Track(event="Search")])

        assert result is False
        args, kwargs = mock_batch_post.call_args
        assert args == ("phc_test",)
        assert kwargs["host"] == "https://posthog.example.com"

    @pytest.mark.asyncio
    async def test_null_transport_discards(self):
        assert await NullTransport().send("abc-123", [Track(event="Search")]) is True
