"""
Tests for Slack opportunity alerts.
"""

import asyncio
import json
from datetime import datetime

import httpx
import pytest

from tierscope.adapters.notifications.slack_notifier import SlackNotifier
from tierscope.application.services.opportunity_detector import OpportunityDetector


@pytest.fixture
def opportunities(make_token):
    tokens = [make_token("A", "9"), make_token("B", "-7"), make_token("C", "1")]
    return OpportunityDetector().detect(tokens, now=datetime(2024, 1, 1))


def make_notifier(handler) -> SlackNotifier:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SlackNotifier("https://hooks.slack.test/T000", client=client)


class TestSlackNotifier:
    """Tests for SlackNotifier."""

    def test_sends_opportunities_above_threshold(self, opportunities):
        bodies = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200, text="ok")

        sent = asyncio.run(make_notifier(handler).send_opportunity_alerts(opportunities, 80.0))

        assert sent is True
        text = bodies[0]["text"]
        assert "*[SHORT]* A (large)" in text
        assert "*[LONG]* B (large)" in text
        assert "Leverage: 5-7x | Expected: +3.4%" in text

    def test_nothing_above_threshold_sends_nothing(self, opportunities):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200)

        sent = asyncio.run(make_notifier(handler).send_opportunity_alerts(opportunities, 90.0))

        assert sent is False
        assert calls == []

    def test_failures_are_swallowed(self, opportunities):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable")

        sent = asyncio.run(make_notifier(handler).send_opportunity_alerts(opportunities, 50.0))

        assert sent is False

    def test_non_200_is_failure(self, opportunities):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, text="no_service")

        sent = asyncio.run(make_notifier(handler).send_opportunity_alerts(opportunities, 50.0))

        assert sent is False
