"""Gunicorn configuration for backend-resources.

Run with:
    gunicorn -c gunicorn.conf.py

Each worker builds its own application (and its own authenticated Keycloak
client) through the create_app() factory.
"""
import os

wsgi_app = "backend_resources.flask_app:create_app()"
bind = os.environ.get("GUNICORN_BIND", "0.0.0.0:8080")
workers = int(os.environ.get("GUNICORN_WORKERS", "2"))
threads = int(os.environ.get("GUNICORN_THREADS", "4"))
timeout = int(os.environ.get("GUNICORN_TIMEOUT", "30"))
loglevel = os.environ.get("LOG_LEVEL", "info").lower()
accesslog = "-"
errorlog = "-"


def post_fork(server, worker):
    """
    Called just after a worker has been forked.

    Reports where Keycloak credentials will come from so a misconfigured
    deployment is visible in the worker log before the first request.
    """
    from pathlib import Path

    secrets_dir = Path("/run/secrets")
    if (secrets_dir / "keycloak_client_secret").is_file():
        worker.log.info("Keycloak client secret found in /run/secrets")
    elif os.environ.get("KEYCLOAK_CLIENT_SECRET"):
        worker.log.info("Keycloak client secret taken from environment")
    elif os.environ.get("KEYCLOAK_ADMIN") and os.environ.get("KEYCLOAK_ADMIN_PASSWORD"):
        worker.log.warning("No service account secret; falling back to admin credentials")
    else:
        worker.log.error("No Keycloak credentials configured; create_app() will fail")
