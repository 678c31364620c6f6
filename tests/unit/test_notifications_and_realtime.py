from unittest.mock import MagicMock

import pytest
import requests

from contest_portal.services import notification_service
from contest_portal.services.notification_service import NotificationService, send_email_task
from contest_portal.services.realtime_client import RealtimeClient

REG = {
    "registration_number": "AB2CD3",
    "competition_title": "Tiny House Competition",
    "registration_type": "Individual",
    "amount": 5000,
    "currency": "LKR",
}


@pytest.fixture()
def queued(monkeypatch):
    task = MagicMock()
    monkeypatch.setattr(notification_service, "send_email_task", task)
    return task


def test_pending_email_is_queued(queued):
    NotificationService().send_pending_payment_email("jane@example.com", "Jane Doe", "ORDER-AC2025-00001", REG)

    to, subject, body = queued.delay.call_args.args
    assert to == "jane@example.com"
    assert "ORDER-AC2025-00001" in subject
    assert "AB2CD3" in body and "LKR 5,000.00" in body


def test_consolidated_email_lists_every_registration(queued):
    second = {**REG, "registration_number": "ZZ9YY8"}

    NotificationService().send_consolidated_registration_confirmed_email(
        "jane@example.com", "Jane Doe", "ORDER-AC2025-00002", [REG, second], 10000, "LKR"
    )

    _, subject, body = queued.delay.call_args.args
    assert subject.startswith("2 registrations confirmed")
    assert "AB2CD3" in body and "ZZ9YY8" in body


def test_rejected_email_carries_reason(queued):
    NotificationService().send_payment_rejected_email("j@example.com", "J", "ORDER-1", REG, "Amount does not match")

    assert "Reason: Amount does not match" in queued.delay.call_args.args[2]


def test_email_task_logs_without_smtp():
    assert send_email_task("j@example.com", "Hello", "Body") == {"to": "j@example.com", "status": "logged"}


def test_realtime_without_relay_is_noop(monkeypatch):
    post = MagicMock()
    monkeypatch.setattr(requests, "post", post)

    assert RealtimeClient(relay_url="").emit([("newFlagCreated", {"flagId": 1})]) is False
    post.assert_not_called()


def test_realtime_posts_event_with_timeout(monkeypatch):
    post = MagicMock()
    monkeypatch.setattr(requests, "post", post)

    client = RealtimeClient(relay_url="http://relay.local/emit/")

    assert client.emit([("flagsResolved", {"flagIds": [1]}), ("moderationStatsUpdate", {"pendingReports": 0})])

    post.assert_called_once_with(
        "http://relay.local/emit",
        json={"events": [
            {"event": "flagsResolved", "payload": {"flagIds": [1]}},
            {"event": "moderationStatsUpdate", "payload": {"pendingReports": 0}},
        ]},
        timeout=8,
    )


def test_realtime_timeout_is_not_retried(monkeypatch):
    post = MagicMock(side_effect=requests.Timeout("slow relay"))
    monkeypatch.setattr(requests, "post", post)

    with pytest.raises(requests.Timeout):
        RealtimeClient(relay_url="http://relay.local/emit").emit([("newFlagCreated", {"flagId": 1})])

    assert post.call_count == 1
