"""
Shared fixtures: an in-memory store that enforces the unique email constraint,
and a Flask app wired to it.
"""
import os
import sys
import threading

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from api.cache import EmailCache
from api.errors import UniqueViolation
from api.settings import Settings


class FakeStore:
    """Stands in for RegistrationStore. Unique on email, like the real table."""

    def __init__(self, emails=(), is_service_role=True):
        self.rows = []
        self.is_service_role = is_service_role
        self.insert_calls = 0
        self.list_calls = 0
        self.fail_with = None
        self.before_insert = None
        self._lock = threading.Lock()
        for email in emails:
            self._append(email, "seed")

    def _append(self, email, source):
        row = {"id": len(self.rows) + 1, "email": email, "source": source}
        self.rows.append(row)
        return dict(row)

    def emails(self):
        return [r["email"] for r in self.rows]

    def list_emails(self):
        self.list_calls += 1
        if self.fail_with:
            raise self.fail_with
        return self.emails()

    def insert(self, email, source):
        self.insert_calls += 1
        if self.before_insert:
            self.before_insert()
        if self.fail_with:
            raise self.fail_with
        with self._lock:
            if email in self.emails():
                raise UniqueViolation(
                    'duplicate key value violates unique constraint "pre_reservations_list_email_key"',
                    code="23505",
                )
            return self._append(email, source)


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def cache():
    return EmailCache()


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def app(settings, store, cache):
    from server import create_app
    app = create_app(settings=settings, store=store, cache=cache, refresh_on_start=False)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
