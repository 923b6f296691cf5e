"""Signup notification mail for the reference receiver."""
from __future__ import annotations

import logging
import smtplib
import ssl
from email.message import EmailMessage
from typing import Any, Dict

import course_settings

log = logging.getLogger(__name__)


def compose_signup_email(p: Dict[str, Any]) -> tuple[str, str]:
    name = p.get("name") or "Onbekend"
    email = p.get("email") or "N/A"
    provinces = p.get("province") or []
    if isinstance(provinces, (list, tuple)):
        provinces = ", ".join(str(x) for x in provinces)

    subject = f"Nieuwe aanmelding: {name} ({p.get('course') or 'N/A'})"
    text_body = (
        "Er is een nieuwe aanmelding binnengekomen via de website.\n\n"
        f"Naam: {name}\n"
        f"E-mail: {email}\n"
        f"Training: {p.get('course') or 'N/A'}\n"
        f"Datum: {p.get('trainingDate') or 'N/A'}\n"
        f"Telefoon: {p.get('phone') or 'N/A'}\n"
        f"Kostenplaats: {p.get('costCenter') or 'N/A'}\n"
        f"Eenheid: {p.get('eenheid') or 'N/A'}\n"
        f"Team: {p.get('team') or 'N/A'}\n"
        f"Provincie(s): {provinces or 'N/A'}\n"
        f"Privacyverklaring geaccepteerd: {'ja' if p.get('privacyAccepted') else 'nee'}\n\n"
        f"{p.get('message') or ''}\n"
    )
    return subject, text_body


def signup_message(p: Dict[str, Any], to_address: str) -> EmailMessage:
    """Plaintext mail for one signup; replies go to the person who signed up."""
    subject, text_body = compose_signup_email(p)
    message = EmailMessage()
    message["Subject"] = subject
    message["From"] = course_settings.SMTP_FROM or course_settings.SMTP_USERNAME
    message["To"] = to_address
    reply_to = p.get("email")
    if isinstance(reply_to, str) and reply_to.strip():
        message["Reply-To"] = reply_to.strip()
    message.set_content(text_body)
    return message


def _smtp_connection() -> smtplib.SMTP:
    host, port = course_settings.SMTP_HOST, course_settings.SMTP_PORT
    timeout = course_settings.SMTP_TIMEOUT
    if port == 465:
        return smtplib.SMTP_SSL(host, port, context=ssl.create_default_context(), timeout=timeout)
    smtp = smtplib.SMTP(host, port, timeout=timeout)
    if course_settings.SMTP_STARTTLS:
        smtp.starttls(context=ssl.create_default_context())
    return smtp


def send_signup_notification(p: Dict[str, Any]) -> bool:
    to_address = course_settings.SIGNUP_NOTIFY_TO
    if not (course_settings.SMTP_USERNAME and course_settings.SMTP_PASSWORD and to_address):
        log.warning("Signup notification skipped: SMTP not fully configured")
        return False

    message = signup_message(p, to_address)
    try:
        with _smtp_connection() as smtp:
            smtp.login(course_settings.SMTP_USERNAME, course_settings.SMTP_PASSWORD)
            smtp.send_message(message)
    except (smtplib.SMTPException, OSError):
        log.exception("Failed to send signup notification to %s", to_address)
        return False
    log.info("Signup notification sent to %s", to_address)
    return True
