"""
Pre-registration submit controller: the state machine behind the landing page's
submit button (the browser runs the same flow in public/scripts/main.js).

Idle → Validating → Submitting → Success | Duplicate | Error, and every
terminal state falls back to Idle after REVERT_DELAY seconds.
"""
import logging
import re
import threading
from enum import Enum

import requests

logger = logging.getLogger(__name__)

REVERT_DELAY = 3.0
DEFAULT_SOURCE = "founders_register"
EMAIL_RE = re.compile(r"^[^\s@\x00-\x1f\x7f]+@[^\s@\x00-\x1f\x7f]+\.[^\s@\x00-\x1f\x7f]+$")

IDLE_LABEL = "Pre-register now"
BUSY_LABEL = "Processing..."
SUCCESS_LABEL = "Registered"
DUPLICATE_LABEL = "Already registered"
ERROR_LABEL = "Failed to save"

IDLE_COLOR = "slate"
SUCCESS_COLOR = "green"
DUPLICATE_COLOR = "orange"
ERROR_COLOR = "red"

CONSENT_MESSAGE = "Please agree to the collection and use of your personal information."
INVALID_EMAIL_MESSAGE = "That doesn't look like a valid email address."
LOCAL_DUPLICATE_MESSAGE = "This email has already been registered."
DUPLICATE_MESSAGE = "This email is already registered."
NETWORK_MESSAGE = "Please check your network connection."
STATUS_MESSAGES = {
    400: "That email address isn't valid. Please check it and try again.",
    429: "Too many requests. Please try again in an hour.",
    500: "Something went wrong on our side. Please try again shortly.",
}
UNKNOWN_MESSAGE = "An unknown error occurred."


class State(Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    DUPLICATE = "duplicate"
    ERROR = "error"


class NetworkFailure(Exception):
    """The request never produced an HTTP response."""


def http_transport(base_url: str, timeout: float = 10.0):
    """Return a send(email, source) -> (status, body) callable posting to the API."""
    url = base_url.rstrip("/") + "/api/pre-register"

    def send(email, source):
        try:
            r = requests.post(url, json={"email": email, "source": source}, timeout=timeout)
        except requests.RequestException as e:
            raise NetworkFailure(str(e)) from e
        try:
            body = r.json()
        except ValueError:
            body = {}
        return r.status_code, body if isinstance(body, dict) else {}

    return send


def timer_scheduler(delay, callback):
    t = threading.Timer(delay, callback)
    t.daemon = True
    t.start()
    return t


class SubmissionController:
    def __init__(self, send, schedule=timer_scheduler, revert_delay=REVERT_DELAY, source=DEFAULT_SOURCE):
        self.send = send
        self.schedule = schedule
        self.revert_delay = revert_delay
        self.source = source

        self.state = State.IDLE
        self.registered = set()
        self.email_value = ""
        self.button_label = IDLE_LABEL
        self.button_color = IDLE_COLOR
        self.button_disabled = False
        self.message = ""
        self._processing = False

    @property
    def processing(self) -> bool:
        return self._processing

    def submit(self, email: str, consent: bool) -> State:
        """Run one submission. Returns the state the button ends up in."""
        if self._processing:
            return self.state
        self._processing = True
        self.email_value = email
        self.state = State.VALIDATING

        email = (email or "").strip().lower()
        if not consent:
            return self._fail(CONSENT_MESSAGE)
        if not EMAIL_RE.match(email):
            return self._fail(INVALID_EMAIL_MESSAGE)
        if email in self.registered:
            return self._fail(LOCAL_DUPLICATE_MESSAGE)

        self.state = State.SUBMITTING
        self.button_disabled = True
        self.button_label = BUSY_LABEL

        try:
            status, body = self.send(email, self.source)
        except NetworkFailure as e:
            logger.warning("Network error while pre-registering: %s", e)
            return self._fail(NETWORK_MESSAGE)

        if status == 201:
            return self._succeed(email)
        if status == 409:
            return self._duplicate(email, body.get("message") or DUPLICATE_MESSAGE)
        return self._fail(STATUS_MESSAGES.get(status) or body.get("message") or UNKNOWN_MESSAGE)

    def _succeed(self, email):
        self.registered.add(email)
        self.state = State.SUCCESS
        self.button_label = SUCCESS_LABEL
        self.button_color = SUCCESS_COLOR
        self.email_value = ""
        self.schedule(self.revert_delay, self.restore)
        return self.state

    def _duplicate(self, email, message):
        self.registered.add(email)
        self.state = State.DUPLICATE
        self.button_disabled = True
        self.button_label = DUPLICATE_LABEL
        self.button_color = DUPLICATE_COLOR
        self.message = message
        self.schedule(self.revert_delay, self.restore)
        return self.state

    def _fail(self, message):
        self.state = State.ERROR
        self.button_disabled = True
        self.button_label = ERROR_LABEL
        self.button_color = ERROR_COLOR
        self.message = message
        self.schedule(self.revert_delay, self.restore)
        return self.state

    def restore(self):
        """Back to Idle: button re-enabled, inline message cleared."""
        self.state = State.IDLE
        self.button_disabled = False
        self.button_label = IDLE_LABEL
        self.button_color = IDLE_COLOR
        self.message = ""
        self._processing = False
