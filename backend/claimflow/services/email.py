"""Email rendering and delivery — console mock unless MAIL_ENABLED=True.

Rendering happens in the API process (``render_*``); delivery happens in the
Celery worker (``deliver``). When MAIL_ENABLED is False the message is written
to the log instead of being sent over SMTP.
"""
import logging
import smtplib
from dataclasses import asdict, dataclass
from email.message import EmailMessage
from email.utils import formataddr

from claimflow.core.config import Settings

logger = logging.getLogger(__name__)

_FOOTER = (
    '<hr style="border: none; border-top: 1px solid #eee; margin: 20px 0;">'
    '<p style="font-size: 12px; color: #94a3b8;">This is an automated message from the Expense Claim System.</p>'
)


@dataclass(frozen=True)
class Email:
    to: str
    subject: str
    html: str

    def to_dict(self) -> dict:
        return asdict(self)


def _money(amount) -> str:
    return f"${float(amount):,.2f}" if amount is not None else "N/A"


def _layout(heading: str, color: str, body: str) -> str:
    return (
        '<div style="font-family: Arial, sans-serif; padding: 20px; border: 1px solid #e0e0e0; border-radius: 5px;">'
        f'<h2 style="color: {color};">{heading}</h2>{body}{_FOOTER}</div>'
    )


def _button(url: str, label: str) -> str:
    return (
        f'<a href="{url}" style="display: inline-block; background-color: #2563eb; color: white; '
        f'padding: 10px 20px; text-decoration: none; border-radius: 5px;">{label}</a>'
    )


# ─── Claim emails ───

def render_claim_submitted(settings: Settings, user, claim) -> Email:
    body = (
        f"<p>Hi <strong>{user.name}</strong>,</p>"
        "<p>Your claim has been submitted and is now pending approval.</p>"
        f"<p><strong>Title:</strong> {claim.title}<br>"
        f"<strong>Amount:</strong> {_money(claim.amount)}<br>"
        f"<strong>Date:</strong> {claim.date}<br>"
        f"<strong>Type:</strong> {claim.type}</p>"
        "<p>You will be notified once an approver takes action.</p>"
    )
    return Email(user.email, f"Claim Submitted: {claim.title}", _layout("Claim Submitted Successfully", "#2563eb", body))


def render_approval_request(settings: Settings, approver, claim, requester_name: str) -> Email:
    body = (
        f"<p>Hi <strong>{approver.name}</strong>,</p>"
        f"<p>You have a new claim from <strong>{requester_name}</strong> waiting for your approval.</p>"
        f"<p><strong>Title:</strong> {claim.title}<br>"
        f"<strong>Amount:</strong> {_money(claim.amount)}<br>"
        f"<strong>Requester:</strong> {requester_name}<br>"
        f"<strong>Date:</strong> {claim.date}</p>"
        + _button(f"{settings.FRONTEND_URL}/tasks", "Go to Tasks")
    )
    return Email(
        approver.email,
        f"Action Required: Approval for {claim.title}",
        _layout("Action Required: Pending Approval", "#d97706", body),
    )


def render_final_status(settings: Settings, user, claim, status: str) -> Email:
    color = "#16a34a" if status == "Approved" else "#dc2626"
    body = (
        f"<p>Hi <strong>{user.name}</strong>,</p>"
        f"<p>Your claim <strong>{claim.title}</strong> has been <strong>{status}</strong>.</p>"
        f"<p><strong>Amount:</strong> {_money(claim.amount)}</p>"
        + _button(f"{settings.FRONTEND_URL}/claim/{claim.id}", "View Claim")
    )
    return Email(user.email, f"Claim {status}: {claim.title}", _layout(f"Claim {status}", color, body))


def render_auto_approved(settings: Settings, user, claim) -> Email:
    body = (
        f"<p>Hi <strong>{user.name}</strong>,</p>"
        f"<p>Your claim <strong>{claim.title}</strong> has been <strong>approved automatically</strong> "
        "as there is no approver assigned for your department.</p>"
        f"<p><strong>Amount:</strong> {_money(claim.amount)}</p>"
        + _button(f"{settings.FRONTEND_URL}/claim/{claim.id}", "View Claim")
    )
    return Email(user.email, f"Claim Auto-Approved: {claim.title}", _layout("Claim Automatically Approved", "#16a34a", body))


# ─── Account emails ───

def render_account_created(settings: Settings, user, password: str) -> Email:
    body = (
        f"<p>Welcome, <strong>{user.name}</strong>. Your account has been created.</p>"
        f"<p><strong>Username:</strong> {user.username}<br>"
        f"<strong>Password:</strong> {password}</p>"
        "<p>Your account is <strong>pending approval</strong>; an admin must activate it before you can sign in.</p>"
        + _button(settings.FRONTEND_URL, "Login")
    )
    return Email(user.email, "Welcome to Expense Claim System - Your Credentials", _layout("Welcome!", "#2563eb", body))


def render_registration_pending(settings: Settings, admin, new_user) -> Email:
    body = (
        "<p>A new employee has registered and is waiting for account activation.</p>"
        f"<p><strong>Name:</strong> {new_user.name}<br>"
        f"<strong>Email:</strong> {new_user.email}<br>"
        f"<strong>Department:</strong> {new_user.department or '-'}</p>"
        + _button(f"{settings.FRONTEND_URL}/employee-management", "Manage Employees")
    )
    return Email(admin.email, f"New Employee Registration: {new_user.name}", _layout("New Registration Request", "#d97706", body))


def render_password_reset(settings: Settings, user, password: str) -> Email:
    body = (
        f"<p>Hi <strong>{user.name}</strong>,</p>"
        "<p>We received a request to reset your password. Here are your new credentials:</p>"
        f"<p><strong>Username:</strong> {user.username}<br>"
        f"<strong>New Password:</strong> {password}</p>"
        + _button(settings.FRONTEND_URL, "Login")
    )
    return Email(user.email, "Password Reset Request", _layout("Password Reset", "#2563eb", body))


# ─── Delivery ───

def deliver(settings: Settings, email: Email) -> None:
    """Send ``email`` over SMTP, or log it when MAIL_ENABLED is False."""
    if not settings.MAIL_ENABLED:
        logger.info(
            "\n"
            "=== EMAIL ===\n"
            "To: %s\n"
            "Subject: %s\n"
            "=============",
            email.to,
            email.subject,
        )
        return

    message = EmailMessage()
    message["From"] = formataddr((settings.MAIL_FROM_NAME, settings.MAIL_FROM))
    message["To"] = email.to
    message["Subject"] = email.subject
    message.set_content("This message requires an HTML-capable mail client.")
    message.add_alternative(email.html, subtype="html")

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30) as smtp:
        if settings.SMTP_STARTTLS:
            smtp.starttls()
        if settings.SMTP_USER:
            smtp.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
        smtp.send_message(message)
    logger.info("Email sent to %s: %s", email.to, email.subject)
