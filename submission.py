"""Outbound JSON POST of a signup payload."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from signup_form import SubmissionTransportError

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class SubmissionClient:
    """Posts one payload per ``send`` call; no retries, body never read.

    Without an injected ``session`` each call is a plain ``requests.post``,
    so no connection pool outlives the request.
    """

    headers = {"Content-Type": "application/json"}

    def __init__(self, url: str, timeout: Optional[float] = None, session: Optional[requests.Session] = None):
        if not url:
            raise ValueError("SubmissionClient needs a target URL")
        self.url = url
        self.timeout = timeout if timeout is not None else DEFAULT_TIMEOUT
        self.session = session

    def send(self, payload: Dict[str, Any]) -> bool:
        post = self.session.post if self.session is not None else requests.post
        try:
            response = post(
                self.url,
                json=payload,
                headers=self.headers,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as exc:
            raise SubmissionTransportError(f"POST {self.url} failed: {exc}") from exc

        if not response.ok:
            log.warning("Signup endpoint %s answered %s", self.url, response.status_code)
            return False
        log.info("Signup delivered to %s (%s)", self.url, response.status_code)
        return True
