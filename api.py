"""JSON receiver for signup submissions (mounted at /api)."""
from __future__ import annotations

import logging
from typing import Any, Dict

from flask import Blueprint, jsonify, request

import course_settings
from notifications import send_signup_notification

api_bp = Blueprint("api", __name__)

log = logging.getLogger(__name__)


def deliver_signup(payload: Dict[str, Any]) -> bool:
    """Hand one signup to its notification channel; False when it was lost."""
    if not course_settings.SIGNUP_NOTIFY_ENABLED:
        log.info("Signup received for %s; notifications disabled", payload.get("course") or "N/A")
        return True
    if not send_signup_notification(payload):
        log.error("Signup notification could not be delivered (course=%r)", payload.get("course"))
        return False
    return True


class LocalReceiver:
    """Sender for the signup form when no external SIGNUP_SUBMIT_URL is set.

    Runs the receiver in the same process, so a single-worker deploy never
    waits on an HTTP request to itself.
    """

    def send(self, payload: Dict[str, Any]) -> bool:
        return deliver_signup(dict(payload))


@api_bp.post("/submit")
def submit():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({"ok": False, "error": "Expected a JSON object."}), 400
    if not deliver_signup(payload):
        return jsonify({"ok": False, "error": "Notification failed."}), 503
    return jsonify({"ok": True}), 200
