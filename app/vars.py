import os

SERVICE_NAME = os.getenv("SERVICE_NAME", "blkprxy")
PROXY_BASE_PATH = os.environ.get("PROXY_BASE_PATH", "/api").rstrip("/")

# Comma-separated hostnames the proxy may reach; empty disables the whitelist
ALLOWED_HOSTS = [
    h.strip().lower() for h in os.environ.get("ALLOWED_HOSTS", "").split(",") if h.strip()
]

PROXY_RETRY_COUNT = int(os.getenv("PROXY_RETRY_COUNT", "3"))
PROXY_RETRY_DELAY_MS = int(os.getenv("PROXY_RETRY_DELAY_MS", "200"))
# Per-attempt upstream timeout in seconds, 0 disables it
PROXY_TIMEOUT = float(os.getenv("PROXY_TIMEOUT", "30"))

OTLP_ENDPOINT = os.getenv("OTLP_ENDPOINT")
OTLP_HEADERS = os.getenv("OTLP_HEADERS", "")
