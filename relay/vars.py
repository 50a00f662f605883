import os

SERVICE_NAME = os.getenv("SERVICE_NAME", "url-relay")
HOST = os.environ.get("HOSTNAME", "0.0.0.0")
PORT = int(os.environ.get("PORT", "3000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "info").lower()

# No upstream timeout unless one is configured explicitly
RELAY_TIMEOUT = os.getenv("RELAY_TIMEOUT", "")
RELAY_VERIFY_TLS = os.getenv("RELAY_VERIFY_TLS", "true").lower() == "true"
RELAY_MERGE_SET_COOKIE = os.getenv("RELAY_MERGE_SET_COOKIE", "false").lower() == "true"

CORS_ALLOW_ORIGINS = [
    o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()
]
CORS_ALLOW_CREDENTIALS = (
    os.getenv("CORS_ALLOW_CREDENTIALS", "true").lower() == "true"
)
CORS_MAX_AGE = int(os.getenv("CORS_MAX_AGE", "86400"))

LANDING_PAGE_PATH = os.getenv("LANDING_PAGE_PATH", "README.md")

OTLP_ENDPOINT = os.getenv("OTLP_ENDPOINT")
OTLP_HEADERS = os.getenv("OTLP_HEADERS", "")
