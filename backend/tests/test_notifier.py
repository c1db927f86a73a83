"""Tests for notification rendering, queueing and delivery."""
import logging
import uuid
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from claimflow.services import email as email_svc
from claimflow.services.notifier import QueueNotifier


def user(name="John Doe", email="user@example.com", **extra):
    return SimpleNamespace(id=uuid.uuid4(), name=name, username="john", email=email, department="IT", **extra)


def claim():
    return SimpleNamespace(
        id=uuid.uuid4(),
        title="Client dinner",
        amount=Decimal("1234.5"),
        date="2024-01-01",
        type="Expense",
    )


@pytest.fixture
def queued():
    return []


@pytest.fixture
def queue_notifier(settings, queued):
    return QueueNotifier(settings, enqueue=queued.append)


# ─── QueueNotifier ────────────────────────────────────────────────────────────

def test_approval_request_is_rendered_and_enqueued(queue_notifier, queued, settings):
    approver = user("Sarah Manager", "sarah@example.com")
    c = claim()

    queue_notifier.notify_approval_requested(approver, c, "John Doe")

    assert len(queued) == 1
    email = queued[0]
    assert email.to == "sarah@example.com"
    assert email.subject == "Action Required: Approval for Client dinner"
    assert "John Doe" in email.html
    assert "$1,234.50" in email.html
    assert f"{settings.FRONTEND_URL}/tasks" in email.html


@pytest.mark.parametrize("status, color", [("Approved", "#16a34a"), ("Rejected", "#dc2626")])
def test_final_status_email(queue_notifier, queued, status, color):
    c = claim()

    queue_notifier.notify_final_status(user(), c, status)

    assert queued[0].subject == f"Claim {status}: Client dinner"
    assert color in queued[0].html
    assert f"/claim/{c.id}" in queued[0].html


def test_account_emails_carry_credentials(queue_notifier, queued):
    u = user()

    queue_notifier.notify_account_created(u, "abc12345")
    queue_notifier.notify_password_reset(u, "zz99yy88")

    assert "abc12345" in queued[0].html
    assert "pending approval" in queued[0].html
    assert queued[1].subject == "Password Reset Request"
    assert "zz99yy88" in queued[1].html


def test_recipient_without_email_is_skipped(queue_notifier, queued, caplog):
    with caplog.at_level(logging.INFO):
        queue_notifier.notify_submitted(user(email=None), claim())
        queue_notifier.notify_approval_requested(None, claim(), "John")

    assert queued == []
    assert "skipped" in caplog.text


def test_enqueue_failure_is_logged_not_raised(settings, caplog):
    def broken(email):
        raise ConnectionError("redis unavailable")

    notifier = QueueNotifier(settings, enqueue=broken)

    with caplog.at_level(logging.ERROR):
        notifier.notify_auto_approved(user(), claim())

    assert "auto_approved" in caplog.text
    assert "redis unavailable" in caplog.text


def test_render_failure_is_logged_not_raised(queue_notifier, queued, caplog):
    broken_claim = SimpleNamespace(id=uuid.uuid4(), title="x", amount="not-a-number", date=None, type="Expense")

    with caplog.at_level(logging.ERROR):
        queue_notifier.notify_submitted(user(), broken_claim)

    assert queued == []
    assert "submitted" in caplog.text


# ─── Delivery ─────────────────────────────────────────────────────────────────

def test_deliver_logs_when_mail_disabled(settings, caplog):
    email = email_svc.Email("user@example.com", "Hello", "<p>hi</p>")

    with patch("claimflow.services.email.smtplib.SMTP") as smtp, caplog.at_level(logging.INFO):
        email_svc.deliver(settings, email)

    smtp.assert_not_called()
    assert "=== EMAIL ===" in caplog.text
    assert "user@example.com" in caplog.text


def test_deliver_sends_over_smtp_when_enabled(settings):
    settings = settings.model_copy(update={
        "MAIL_ENABLED": True,
        "SMTP_HOST": "smtp.example.com",
        "SMTP_PORT": 2525,
        "SMTP_USER": "mailer",
        "SMTP_PASSWORD": "secret",
        "SMTP_STARTTLS": True,
    })
    email = email_svc.Email("user@example.com", "Hello", "<p>hi</p>")

    with patch("claimflow.services.email.smtplib.SMTP") as smtp:
        email_svc.deliver(settings, email)

    smtp.assert_called_once_with("smtp.example.com", 2525, timeout=30)
    conn = smtp.return_value.__enter__.return_value
    conn.starttls.assert_called_once()
    conn.login.assert_called_once_with("mailer", "secret")
    message = conn.send_message.call_args.args[0]
    assert message["To"] == "user@example.com"
    assert message["Subject"] == "Hello"


def test_send_email_task_delivers_payload():
    from claimflow.workers.tasks import send_email

    payload = email_svc.Email("user@example.com", "Hello", "<p>hi</p>").to_dict()

    with patch("claimflow.services.email.deliver") as deliver:
        send_email(payload)

    deliver.assert_called_once()
    assert deliver.call_args.args[1] == email_svc.Email(**payload)
