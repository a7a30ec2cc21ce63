"""
Supabase access for the pre-registration list.
Requires: SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY (or SUPABASE_ANON_KEY, with RLS limits).
"""
import logging

from postgrest.exceptions import APIError

from api.errors import StoreError, StorePermissionError, UniqueViolation

logger = logging.getLogger(__name__)

TABLE = "pre_reservations_list"
PAGE_SIZE = 1000

UNIQUE_VIOLATION = "23505"
INSUFFICIENT_PRIVILEGE = "42501"


def looks_publishable(key: str) -> bool:
    return isinstance(key, str) and key.startswith("sb_publishable_")


def select_credential(service_role_key: str, anon_key: str):
    """Pick the key to connect with. Returns (key, is_service_role)."""
    if service_role_key and not looks_publishable(service_role_key):
        return service_role_key, True
    if service_role_key:
        logger.warning(
            "SUPABASE_SERVICE_ROLE_KEY looks like a publishable key. "
            "The server needs the real service_role key for writes."
        )
    if anon_key:
        logger.warning(
            "No service role key: using SUPABASE_ANON_KEY. "
            "Inserts may be rejected by row-level security."
        )
        return anon_key, False
    if service_role_key:
        return service_role_key, False
    return "", False


def translate_error(exc: APIError) -> StoreError:
    code = getattr(exc, "code", None)
    message = getattr(exc, "message", None) or str(exc)
    fields = {"code": code, "details": getattr(exc, "details", None), "hint": getattr(exc, "hint", None)}
    if code == UNIQUE_VIOLATION:
        return UniqueViolation(message, **fields)
    if code == INSUFFICIENT_PRIVILEGE or "permission" in message.lower():
        return StorePermissionError(message, **fields)
    return StoreError(message, **fields)


class RegistrationStore:
    """The pre_reservations_list table behind a Supabase client."""

    def __init__(self, client, is_service_role: bool = True):
        self.client = client
        self.is_service_role = is_service_role

    def list_emails(self) -> list:
        """Full scan of stored emails, paged to stay under the PostgREST row cap."""
        emails = []
        start = 0
        while True:
            try:
                result = (
                    self.client.table(TABLE)
                    .select("email")
                    .range(start, start + PAGE_SIZE - 1)
                    .execute()
                )
            except APIError as e:
                raise translate_error(e) from e
            rows = result.data or []
            emails.extend(r["email"] for r in rows if r.get("email"))
            if len(rows) < PAGE_SIZE:
                return emails
            start += PAGE_SIZE

    def insert(self, email: str, source: str) -> dict:
        """Insert one registration and return the stored row."""
        try:
            result = self.client.table(TABLE).insert({"email": email, "source": source}).execute()
        except APIError as e:
            raise translate_error(e) from e
        rows = result.data or []
        return rows[0] if rows else {"email": email, "source": source}


def get_store(settings):
    """Build the store from settings, or None when Supabase is not configured."""
    key, is_service_role = select_credential(settings.service_role_key, settings.anon_key)
    if not settings.supabase_url or not key:
        logger.error("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY (or SUPABASE_ANON_KEY) are required. Check .env")
        return None
    from supabase import create_client
    client = create_client(settings.supabase_url, key)
    if is_service_role:
        logger.info("Supabase client initialized (service_role)")
    else:
        logger.warning("Supabase client initialized (anon/publishable); writes may be restricted")
    return RegistrationStore(client, is_service_role=is_service_role)
