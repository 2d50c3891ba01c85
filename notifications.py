"""
Notification services for the Renovate platform.

Email: Resend (preferred) or SendGrid (fallback).

IMPORTANT: No function in this module should ever raise an exception.
All errors are caught and logged so that a notification failure never
rolls back or breaks a lifecycle transition that has already committed.

Email sending is performed asynchronously via a background thread so that
HTTP request handlers are never blocked by network I/O to the email provider.
"""

import os
import logging
import threading

from flask import current_app, has_app_context

from email_templates import (
    inspection_scheduled_html,
    bidding_started_html,
    bidding_closed_html,
    new_bid_html,
    bid_accepted_html,
    bid_rejected_html,
    bid_withdrawn_html,
    welcome_html,
    format_category,
)

logger = logging.getLogger(__name__)


# template name -> (subject format string, html renderer)
TEMPLATES = {
    "inspection_scheduled": ("Site inspection scheduled for a {category} project", inspection_scheduled_html),
    "bidding_started": ("Bidding is open: {category} project", bidding_started_html),
    "bidding_closed": ("Bidding closed on your {category} project", bidding_closed_html),
    "new_bid": ("New bid on your {category} project", new_bid_html),
    "bid_accepted": ("Your bid was accepted: {category} project", bid_accepted_html),
    "bid_rejected": ("Update on your {category} bid", bid_rejected_html),
    "bid_withdrawn": ("A bid on your {category} project was withdrawn", bid_withdrawn_html),
    "welcome": ("Welcome to Renovate!", welcome_html),
}


def _email_settings():
    """Snapshot provider settings so the sender thread needs no app context."""
    if has_app_context():
        cfg = current_app.config
        return {
            "resend_api_key": cfg.get("RESEND_API_KEY", ""),
            "sendgrid_api_key": cfg.get("SENDGRID_API_KEY", ""),
            "email_from": cfg.get("EMAIL_FROM", ""),
            "email_from_name": cfg.get("EMAIL_FROM_NAME", ""),
        }
    return {
        "resend_api_key": os.environ.get("RESEND_API_KEY", ""),
        "sendgrid_api_key": os.environ.get("SENDGRID_API_KEY", ""),
        "email_from": os.environ.get("EMAIL_FROM", "notifications@renovateplatform.com"),
        "email_from_name": os.environ.get("EMAIL_FROM_NAME", "Renovate Platform"),
    }


# ---------------------------------------------------------------------------
# Email: Resend (preferred) or SendGrid (fallback)
# ---------------------------------------------------------------------------
def _send_email_sync(to_email, subject, html_content, settings):
    """Send an email synchronously via Resend (preferred) or SendGrid (fallback).

    Returns a provider id / status or None in dev mode. Never raises.
    """
    try:
        if settings["resend_api_key"]:
            return _send_email_resend(to_email, subject, html_content, settings)

        if settings["sendgrid_api_key"]:
            return _send_email_sendgrid(to_email, subject, html_content, settings)

        # --- Dev mode: no email provider configured ---
        logger.info("[DEV] Email to %s: %s", to_email, subject)
        return None
    except Exception:
        logger.exception("Failed to send email to %s", to_email)
        return None


def send_email(to_email, subject, html_content):
    """Send an email asynchronously in a background thread.

    Returns immediately. Never raises.
    """
    try:
        thread = threading.Thread(
            target=_send_email_sync,
            args=(to_email, subject, html_content, _email_settings()),
            daemon=True,
        )
        thread.start()
        logger.debug("Email queued (async) to %s: %s", to_email, subject)
        return True
    except Exception:
        logger.exception("Failed to queue async email to %s", to_email)
        return None


def _send_email_resend(to_email, subject, html_content, settings):
    """Send via the Resend API. Returns the response id or None."""
    try:
        import resend
        resend.api_key = settings["resend_api_key"]

        params = {
            "from": "{} <{}>".format(settings["email_from_name"], settings["email_from"]),
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }
        response = resend.Emails.send(params)
        logger.info("Email sent via Resend to %s (id: %s)", to_email, response.get("id"))
        return response.get("id")
    except Exception:
        logger.exception("Resend email failed for %s", to_email)
        return None


def _send_email_sendgrid(to_email, subject, html_content, settings):
    """Send via SendGrid. Returns status code or None."""
    try:
        from sendgrid import SendGridAPIClient
        from sendgrid.helpers.mail import Mail

        message = Mail(
            from_email=(settings["email_from"], settings["email_from_name"]),
            to_emails=to_email,
            subject=subject,
            html_content=html_content,
        )
        sg = SendGridAPIClient(settings["sendgrid_api_key"])
        response = sg.send(message)
        logger.info("Email sent via SendGrid to %s (status: %s)", to_email, response.status_code)
        return response.status_code
    except Exception:
        logger.exception("SendGrid email failed for %s", to_email)
        return None


# ---------------------------------------------------------------------------
# Templated notifications
# ---------------------------------------------------------------------------
def send(recipient, template, data):
    """Render ``template`` with ``data`` and email it to ``recipient``. Never raises.

    ``data`` must carry the keyword arguments of the template's renderer; a
    ``category`` key, when present, is also used in the subject line.
    """
    try:
        if not recipient:
            logger.warning("Skipping %s notification: no recipient", template)
            return None

        subject_fmt, renderer = TEMPLATES[template]
        subject = subject_fmt.format(category=format_category(data.get("category")).lower())
        html = renderer(**data)

        return send_email(recipient, subject, html)
    except Exception:
        logger.exception("Failed to send %s notification to %s", template, recipient)
        return None
