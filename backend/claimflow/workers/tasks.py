"""Celery tasks for notification delivery."""
import logging
import smtplib

from claimflow.core.config import get_settings
from claimflow.services import email as email_svc
from claimflow.workers.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(
    name="claimflow.send_email",
    autoretry_for=(smtplib.SMTPException, OSError),
    retry_backoff=True,
    max_retries=3,
)
def send_email(payload: dict) -> None:
    """Deliver one rendered email (``Email.to_dict()`` payload)."""
    email = email_svc.Email(**payload)
    logger.info("send_email: to=%s subject=%s", email.to, email.subject)
    email_svc.deliver(get_settings(), email)
