"""
Pre-registration landing server: serves the pages + the signup API.
Set env: SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY (or SUPABASE_ANON_KEY), optionally ENV_DECRYPTION_KEY.
Run: python server.py  →  http://127.0.0.1:3000/
"""
import logging
import os
import pathlib

from dotenv import load_dotenv

load_dotenv(dotenv_path=pathlib.Path(__file__).resolve().parent / ".env")

from flask import Flask, Response, jsonify, request, send_from_directory

from api.cache import EmailCache
from api.errors import RateLimited, RegistrationError
from api.pre_register import PreRegistration, register
from api.rate_limit import RateLimiter
from api.settings import Settings
from api.store import get_store

logger = logging.getLogger(__name__)

PUBLIC_DIR = pathlib.Path(__file__).resolve().parent / "public"
PAGES_DIR = PUBLIC_DIR / "pages"

ALLOWED_STATIC_EXTENSIONS = {'.html', '.css', '.js', '.png', '.jpg', '.jpeg', '.gif', '.svg', '.ico', '.webp', '.woff', '.woff2', '.ttf'}


def client_address(trust_proxy: bool) -> str:
    if trust_proxy:
        forwarded = request.headers.get("X-Forwarded-For", "")
        if forwarded:
            return forwarded.split(",")[0].strip()
    return request.remote_addr or "unknown"


def create_app(settings=None, store=None, cache=None, refresh_on_start=True):
    """Build the Flask app. Pass store/cache to inject test doubles."""
    settings = settings or Settings.from_env()
    if store is None:
        store = get_store(settings)
    cache = cache if cache is not None else EmailCache()

    app = Flask(__name__, static_folder=None)
    app.config["SETTINGS"] = settings
    app.extensions["registration_store"] = store
    app.extensions["email_cache"] = cache

    api_limiter = RateLimiter(settings.api_rate_limit, settings.api_rate_window)
    register_limiter = RateLimiter(settings.register_rate_limit, settings.register_rate_window)

    # ── Security headers ──

    @app.after_request
    def add_security_headers(response):
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "camera=(), geolocation=(), payment=()"
        if request.path.startswith("/api/"):
            response.headers["Access-Control-Allow-Origin"] = settings.cors_origin
        return response

    # ── Rate limiting (global, every /api/ request) ──

    @app.before_request
    def limit_api_traffic():
        if not request.path.startswith("/api/") or request.method == "OPTIONS":
            return None
        addr = client_address(settings.trust_proxy)
        if not api_limiter.hit(addr):
            logger.warning("Global API rate limit hit: %s %s", addr, request.path)
            raise RateLimited()
        return None

    @app.errorhandler(RegistrationError)
    def registration_error(e):
        return jsonify(e.to_response()), e.status_code

    @app.errorhandler(404)
    @app.errorhandler(405)
    def not_found(e):
        return send_from_directory(PAGES_DIR, "404.html"), 404

    # --- Page routes ---

    @app.route("/")
    def index():
        # Fire-and-forget: the page never waits on the store scan.
        cache.start_refresh(store)
        return send_from_directory(PAGES_DIR, "index.html")

    @app.route("/privacy")
    def privacy():
        return send_from_directory(PAGES_DIR, "privacy.html")

    # --- API routes ---

    @app.route("/api/pre-register", methods=["POST", "OPTIONS"])
    def pre_register():
        if request.method == "OPTIONS":
            r = Response("", 204)
            r.headers["Access-Control-Allow-Methods"] = "POST, OPTIONS"
            r.headers["Access-Control-Allow-Headers"] = "Content-Type"
            return r

        addr = client_address(settings.trust_proxy)
        if not register_limiter.hit(addr):
            logger.warning("Pre-register rate limit hit: %s", addr)
            raise RateLimited()

        payload = PreRegistration.parse(request.get_json(force=True, silent=True))
        try:
            row = register(payload, cache, store)
        except RegistrationError:
            raise
        except Exception:
            logger.exception("Unexpected error in /api/pre-register")
            raise RegistrationError()
        return jsonify({"message": "Pre-registration complete!", "data": row}), 201

    @app.route("/<path:path>")
    def serve_static(path):
        """Serve static files (css, js, images) that exist under public/."""
        if ".." in path or path.startswith("/"):
            return not_found(None)
        ext = os.path.splitext(path)[1].lower()
        if ext not in ALLOWED_STATIC_EXTENSIONS:
            return not_found(None)
        resolved = os.path.realpath(PUBLIC_DIR / path)
        if not resolved.startswith(os.path.realpath(PUBLIC_DIR)) or not os.path.isfile(resolved):
            return not_found(None)
        return send_from_directory(PUBLIC_DIR, path)

    if refresh_on_start:
        cache.start_refresh(store)
    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    settings = Settings.from_env()
    app = create_app(settings)
    print(f"Landing server running at http://127.0.0.1:{settings.port}/")
    app.run(host="0.0.0.0", port=settings.port, debug=settings.debug)
