"""Shared site configuration pulled from environment variables."""
import os

def _bool_env(name: str, default: str = "false") -> bool:
    value = os.getenv(name, default)
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}

def _float_env(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
SESSION_COOKIE_SECURE = _bool_env("SESSION_COOKIE_SECURE", "true")

BRAND_NAME = os.getenv("BRAND_NAME", "Scrum Academy")
BASE_PATH = os.getenv("BASE_PATH", "")
CONTACT_PHONE = os.getenv("CONTACT_PHONE", "088-5326720")

# Empty hands signups to the in-process receiver (api.deliver_signup).
SIGNUP_SUBMIT_URL = os.getenv("SIGNUP_SUBMIT_URL", "").strip()
SIGNUP_SUBMIT_TIMEOUT = _float_env("SIGNUP_SUBMIT_TIMEOUT", 10.0)

SIGNUP_NOTIFY_ENABLED = _bool_env("SIGNUP_NOTIFY_ENABLED", "true")
SIGNUP_NOTIFY_TO = os.getenv("SIGNUP_NOTIFY_TO", "aanmelden@scrumacademy.nl").strip()

# Outgoing mail for the receiver. Port 465 is implicit TLS, other ports use STARTTLS.
SMTP_HOST = os.getenv("SMTP_HOST", "smtp.gmail.com").strip()
SMTP_PORT = int(os.getenv("SMTP_PORT", "465"))
SMTP_USERNAME = os.getenv("SMTP_USERNAME", "").strip()
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "").strip()
SMTP_FROM = os.getenv("SMTP_FROM", "Scrum Academy <aanmelden@scrumacademy.nl>").strip()
SMTP_STARTTLS = _bool_env("SMTP_STARTTLS", "true")
SMTP_TIMEOUT = _float_env("SMTP_TIMEOUT", 10.0)
