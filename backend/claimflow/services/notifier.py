"""Notification dispatch for claim and account events.

Notifications are fire-and-forget: a failure to render or enqueue is logged
and swallowed so it can never fail or roll back the state change that
triggered it.
"""
import logging
from collections.abc import Callable

from claimflow.core.config import Settings
from claimflow.services import email as email_svc

logger = logging.getLogger(__name__)


class Notifier:
    """Interface used by the claim and user services."""

    def notify_submitted(self, user, claim) -> None:
        raise NotImplementedError

    def notify_approval_requested(self, approver, claim, requester_name: str) -> None:
        raise NotImplementedError

    def notify_final_status(self, user, claim, status: str) -> None:
        raise NotImplementedError

    def notify_auto_approved(self, user, claim) -> None:
        raise NotImplementedError

    def notify_account_created(self, user, password: str) -> None:
        raise NotImplementedError

    def notify_registration_pending(self, admin, new_user) -> None:
        raise NotImplementedError

    def notify_password_reset(self, user, password: str) -> None:
        raise NotImplementedError


def _enqueue_celery(email: email_svc.Email) -> None:
    from claimflow.workers.tasks import send_email

    send_email.delay(email.to_dict())


class QueueNotifier(Notifier):
    """Renders emails in-process and hands them to the Celery worker."""

    def __init__(self, settings: Settings, enqueue: Callable[[email_svc.Email], None] | None = None):
        self.settings = settings
        self._enqueue = enqueue or _enqueue_celery

    def _dispatch(self, kind: str, recipient, render: Callable[[], email_svc.Email]) -> None:
        if recipient is None or not getattr(recipient, "email", None):
            logger.info("Notification %s skipped: recipient has no email address.", kind)
            return
        try:
            self._enqueue(render())
        except Exception as exc:
            logger.error("Notification %s to %s failed: %s", kind, recipient.email, exc, exc_info=True)

    def notify_submitted(self, user, claim) -> None:
        self._dispatch(
            "submitted", user,
            lambda: email_svc.render_claim_submitted(self.settings, user, claim),
        )

    def notify_approval_requested(self, approver, claim, requester_name: str) -> None:
        self._dispatch(
            "approval_requested", approver,
            lambda: email_svc.render_approval_request(self.settings, approver, claim, requester_name),
        )

    def notify_final_status(self, user, claim, status: str) -> None:
        self._dispatch(
            "final_status", user,
            lambda: email_svc.render_final_status(self.settings, user, claim, status),
        )

    def notify_auto_approved(self, user, claim) -> None:
        self._dispatch(
            "auto_approved", user,
            lambda: email_svc.render_auto_approved(self.settings, user, claim),
        )

    def notify_account_created(self, user, password: str) -> None:
        self._dispatch(
            "account_created", user,
            lambda: email_svc.render_account_created(self.settings, user, password),
        )

    def notify_registration_pending(self, admin, new_user) -> None:
        self._dispatch(
            "registration_pending", admin,
            lambda: email_svc.render_registration_pending(self.settings, admin, new_user),
        )

    def notify_password_reset(self, user, password: str) -> None:
        self._dispatch(
            "password_reset", user,
            lambda: email_svc.render_password_reset(self.settings, user, password),
        )
