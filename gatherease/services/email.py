import os
import re
import logging
from typing import Optional, Tuple
from datetime import datetime

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail, To, From, Subject, HtmlContent, PlainTextContent
from jinja2 import Environment, FileSystemLoader, select_autoescape

from gatherease.core.settings import settings

logger = logging.getLogger("gatherease.email")

_HEAD_RE = re.compile(r"<(head|style)\b.*?</\1>", re.S | re.I)
_TAG_RE = re.compile(r"<[^>]*>")
_BLANK_LINES_RE = re.compile(r"\n\s*\n+")


def strftime_filter(value, format='%Y'):
    """Custom Jinja2 filter for strftime formatting."""
    if isinstance(value, str) and value == 'now':
        return datetime.now().strftime(format)
    if isinstance(value, datetime):
        return value.strftime(format)
    return value


def get_email_template_env() -> Environment:
    """Get Jinja2 environment for email templates."""
    template_dir = os.path.join(os.path.dirname(__file__), '../templates/email')
    env = Environment(
        loader=FileSystemLoader(template_dir),
        autoescape=select_autoescape(['html', 'xml'])
    )
    env.filters['strftime'] = strftime_filter
    return env


def get_sendgrid_client() -> Optional[SendGridAPIClient]:
    """Get SendGrid client if configured and log diagnostics (without leaking key)."""
    api_key = os.getenv("SENDGRID_API_KEY") or settings.sendgrid_api_key
    if not api_key:
        logger.warning("[email] SENDGRID_API_KEY missing from environment")
        return None
    if api_key.startswith("your_"):
        logger.warning("[email] SENDGRID_API_KEY appears to be a placeholder (starts with 'your_')")
        return None
    logger.debug(f"[email] SendGrid key loaded (length={len(api_key)})")
    try:
        return SendGridAPIClient(api_key)
    except Exception as e:
        logger.error(f"[email] Failed to instantiate SendGrid client: {e}")
        return None


def html_to_plain(html: str) -> str:
    text = _TAG_RE.sub("", _HEAD_RE.sub("", html))
    return _BLANK_LINES_RE.sub("\n\n", text).strip()


def render_email(template_name: str, **context) -> Tuple[str, str]:
    """Render an HTML template plus a plain-text version of it."""
    env = get_email_template_env()
    template = env.get_template(template_name)
    html = template.render(app_url=settings.app_url, **context)
    return html, html_to_plain(html)


def is_email_configured() -> bool:
    return get_sendgrid_client() is not None


def send_email(to_email: str, subject: str, html_content: str,
               plain_content: Optional[str] = None, from_email: Optional[str] = None) -> bool:
    """Send email using SendGrid.

    Logging levels:
    - INFO: success
    - WARNING: configuration issues / skipped send
    - ERROR: failed send attempt with response diagnostics
    """
    client = get_sendgrid_client()
    if not client:
        logger.warning(f"[email] Skipping send to={to_email} (client unavailable)")
        return False

    from_email = from_email or settings.email_from_address
    if not from_email:
        logger.error(f"[email] No from_email resolved; aborting send to={to_email}")
        return False

    message = Mail(
        from_email=From(from_email, settings.email_from_name),
        to_emails=To(to_email),
        subject=Subject(subject),
        html_content=HtmlContent(html_content),
        plain_text_content=PlainTextContent(plain_content or html_to_plain(html_content))
    )

    try:
        logger.debug(f"[email] Sending message payload_summary={{'to': to_email, 'subject': subject[:120], 'html_len': len(html_content)}}")
        response = client.send(message)
    except Exception as e:
        logger.error(f"[email] Exception during send to={to_email}: {e}", exc_info=True)
        return False

    status = getattr(response, 'status_code', None)
    if status in (200, 202):
        logger.info(f"[email] Sent to={to_email} status={status}")
        return True

    body_snippet = None
    if getattr(response, 'body', None):
        raw = response.body.decode() if hasattr(response.body, 'decode') else str(response.body)
        body_snippet = raw[:500]
    logger.error(f"[email] Failed send to={to_email} status={status} body_snippet={body_snippet}")
    return False


def render_survey_invitation_email(attendee_name: str, event_name: str, survey_url: str) -> Tuple[str, str, str]:
    html, plain = render_email(
        "survey_invitation.html",
        attendee_name=attendee_name,
        event_name=event_name,
        survey_url=survey_url,
    )
    return f"Thank you for attending {event_name}!", html, plain


def render_survey_reminder_email(attendee_name: str, event_name: str, survey_url: str) -> Tuple[str, str, str]:
    html, plain = render_email(
        "survey_reminder.html",
        attendee_name=attendee_name,
        event_name=event_name,
        survey_url=survey_url,
    )
    return f"Reminder: share your feedback on {event_name}", html, plain


def render_event_reminder_email(attendee_name: str, event_name: str, date: str,
                                time: str, location: str, event_url: str) -> Tuple[str, str, str]:
    html, plain = render_email(
        "event_reminder.html",
        attendee_name=attendee_name,
        event_name=event_name,
        date=date,
        time=time,
        location=location,
        event_url=event_url,
    )
    return f"Reminder: {event_name} is coming up", html, plain


def render_registration_confirmation_email(attendee_name: str, event_name: str, date: str,
                                           time: str, location: str, event_url: str) -> Tuple[str, str, str]:
    html, plain = render_email(
        "registration_confirmation.html",
        attendee_name=attendee_name,
        event_name=event_name,
        date=date,
        time=time,
        location=location,
        event_url=event_url,
    )
    return f"Registration Confirmed: {event_name}", html, plain
