# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for notification channels."""

import json

import httpx
import pytest

from src.core.config import NotificationSettings
from src.infrastructure.notifications.channels import (
    ChannelType,
    DeliveryStatus,
    EmailChannel,
    InAppChannel,
    NotificationPayload,
    WebhookChannel,
)

pytestmark = pytest.mark.unit

WEBHOOK_URL = "http://hooks.test/notify"


@pytest.fixture
def payload() -> NotificationPayload:
    return NotificationPayload(
        notification_id="n-1",
        institution_id="inst-1",
        notification_type="exam_locked",
        data={"exam_id": "e-1", "reason": "expired"},
        recipient_id="teacher-1",
    )


class TestInAppChannel:
    """Tests for InAppChannel."""

    @pytest.mark.asyncio
    async def test_send_succeeds(self, payload: NotificationPayload) -> None:
        result = await InAppChannel().send(payload)

        assert result.ok
        assert result.channel == ChannelType.IN_APP
        assert result.message_id == "n-1"
        assert result.sent_at is not None


class TestEmailChannel:
    """Tests for EmailChannel."""

    @pytest.mark.asyncio
    async def test_send_records_sender_and_subject(self, payload: NotificationPayload) -> None:
        channel = EmailChannel(NotificationSettings(email_from="exams@school.test"))

        result = await channel.send(payload)

        assert result.ok
        assert result.channel == ChannelType.EMAIL
        assert result.metadata == {"from": "exams@school.test", "subject": "Exam locked"}


class TestWebhookChannel:
    """Tests for WebhookChannel."""

    @pytest.mark.asyncio
    async def test_missing_url(self, payload: NotificationPayload) -> None:
        channel = WebhookChannel(NotificationSettings(webhook_url=None))

        result = await channel.send(payload)

        assert result.status == DeliveryStatus.FAILED
        assert result.error_message == "Webhook URL not configured"

    @pytest.mark.asyncio
    async def test_posts_notification(self, payload: NotificationPayload) -> None:
        received: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            received.append(request)
            return httpx.Response(200)

        channel = WebhookChannel(
            NotificationSettings(webhook_url=WEBHOOK_URL),
            transport=httpx.MockTransport(handler),
        )

        result = await channel.send(payload)

        assert result.ok
        assert result.metadata == {"status_code": 200}
        [request] = received
        assert request.method == "POST"
        assert json.loads(request.content) == {
            "id": "n-1",
            "institution_id": "inst-1",
            "type": "exam_locked",
            "recipient_id": "teacher-1",
            "payload": {"exam_id": "e-1", "reason": "expired"},
        }

    @pytest.mark.asyncio
    async def test_error_status(self, payload: NotificationPayload) -> None:
        channel = WebhookChannel(
            NotificationSettings(webhook_url=WEBHOOK_URL),
            transport=httpx.MockTransport(lambda request: httpx.Response(503)),
        )

        result = await channel.send(payload)

        assert not result.ok
        assert result.error_message == "Webhook returned 503"
        assert result.metadata == {"status_code": 503}

    @pytest.mark.asyncio
    async def test_connection_error(self, payload: NotificationPayload) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        channel = WebhookChannel(
            NotificationSettings(webhook_url=WEBHOOK_URL),
            transport=httpx.MockTransport(handler),
        )

        result = await channel.send(payload)

        assert not result.ok
        assert result.error_message == "Webhook request failed: connection refused"
