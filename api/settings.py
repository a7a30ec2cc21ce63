"""
Environment configuration for the landing server.
Reads the process environment (after .env is loaded by server.py) and decrypts
Supabase credentials in-process when ENV_DECRYPTION_KEY is set.
"""
import os
from dataclasses import dataclass

from api.errors import ConfigError
from api.security import maybe_decrypt

_SECRET_VARS = ("SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY", "SUPABASE_ANON_KEY")


def _int_env(env, name: str, default: int) -> int:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {value}")
    return value


def _bool_env(env, name: str, default: bool = False) -> bool:
    raw = (env.get(name) or "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "y"}


@dataclass
class Settings:
    supabase_url: str = ""
    service_role_key: str = ""
    anon_key: str = ""

    port: int = 3000
    debug: bool = False
    cors_origin: str = "*"
    trust_proxy: bool = False

    # Global limiter covers every /api/ request; the registration limiter is stricter.
    api_rate_limit: int = 100
    api_rate_window: int = 15 * 60
    register_rate_limit: int = 5
    register_rate_window: int = 60 * 60

    @classmethod
    def from_env(cls, env=None) -> "Settings":
        env = os.environ if env is None else env
        key = (env.get("ENV_DECRYPTION_KEY") or "").strip()
        secrets = {name: maybe_decrypt((env.get(name) or "").strip(), key) for name in _SECRET_VARS}
        return cls(
            supabase_url=secrets["SUPABASE_URL"],
            service_role_key=secrets["SUPABASE_SERVICE_ROLE_KEY"],
            anon_key=secrets["SUPABASE_ANON_KEY"],
            port=_int_env(env, "PORT", 3000),
            debug=_bool_env(env, "FLASK_DEBUG"),
            cors_origin=(env.get("CORS_ORIGIN") or "*").strip(),
            trust_proxy=_bool_env(env, "TRUST_PROXY"),
            api_rate_limit=_int_env(env, "API_RATE_LIMIT", 100),
            api_rate_window=_int_env(env, "API_RATE_WINDOW", 15 * 60),
            register_rate_limit=_int_env(env, "REGISTER_RATE_LIMIT", 5),
            register_rate_window=_int_env(env, "REGISTER_RATE_WINDOW", 60 * 60),
        )
