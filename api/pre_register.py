"""
POST /api/pre-register: validates a signup, suppresses duplicates, stores it in Supabase.
"""
import logging
from dataclasses import dataclass

from api.errors import (
    AlreadyRegistered,
    InvalidInput,
    PermissionDenied,
    StoreError,
    StoreFailure,
    StorePermissionError,
    StoreUnavailable,
    UniqueViolation,
)
from api.security import is_valid_email, normalize_email, sanitize_text

logger = logging.getLogger(__name__)

DEFAULT_SOURCE = "landing"
MAX_SOURCE_LENGTH = 64


@dataclass(frozen=True)
class PreRegistration:
    email: str
    source: str = DEFAULT_SOURCE

    @classmethod
    def parse(cls, data) -> "PreRegistration":
        """Build a normalized payload from a decoded JSON body, or raise InvalidInput."""
        if not isinstance(data, dict):
            raise InvalidInput()
        email = data.get("email")
        if not isinstance(email, str):
            raise InvalidInput()
        email = normalize_email(email)
        if not is_valid_email(email):
            raise InvalidInput()

        source = data.get("source")
        source = sanitize_text(source, max_length=MAX_SOURCE_LENGTH) if isinstance(source, str) else ""
        return cls(email=email, source=source or DEFAULT_SOURCE)


def register(payload: PreRegistration, cache, store) -> dict:
    """Store a pre-registration. Returns the inserted row.

    Raises AlreadyRegistered when the cache or the store's unique constraint
    reports a duplicate, PermissionDenied / StoreFailure on other store errors.
    """
    email = payload.email
    if cache.has(email):
        raise AlreadyRegistered()
    if store is None:
        raise StoreUnavailable()

    try:
        row = store.insert(email, payload.source)
    except UniqueViolation:
        # Another request won the race past the cache check.
        cache.add(email)
        raise AlreadyRegistered()
    except StorePermissionError as e:
        logger.error("Supabase INSERT permission error: %s (service_role=%s)", e.as_log_fields(), store.is_service_role)
        raise PermissionDenied()
    except StoreError as e:
        logger.error("Supabase INSERT error: %s (service_role=%s)", e.as_log_fields(), store.is_service_role)
        raise StoreFailure()

    cache.add(email)
    logger.info("Pre-registration stored: email=%s source=%s", email, payload.source)
    return {"id": row.get("id"), "email": row.get("email", email), "source": row.get("source", payload.source)}
