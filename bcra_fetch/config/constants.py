"""Pure constants for the fetch layer. No side effects at import time."""

# === Upstream ===
BCRA_BASE_URL = "https://api.bcra.gob.ar"
MONETARY_PATH = "/estadisticas/v3.0/monetarias"
DEBTS_PATH = "/centraldedeudores/v1.0/Deudas"
DEFAULT_REQUEST_TIMEOUT = 15.0  # seconds, hard timeout per upstream call

# === Series parameters ===
DEFAULT_SERIES_LIMIT = 1000
MAX_SERIES_LIMIT = 3000
MAX_SERIES_OFFSET = 1_000_000  # well past the longest daily series

# === Rate Limiter (fixed window) ===
RATE_LIMIT_MAX_REQUESTS = 60
RATE_LIMIT_WINDOW = 60.0  # seconds

# === Circuit Breaker ===
CIRCUIT_FAILURE_THRESHOLD = 5
CIRCUIT_RESET_TIMEOUT = 60.0  # seconds

# === Retry (linear backoff) ===
MAX_RETRIES = 3
RETRY_DELAY = 1.0  # seconds

# === In-process cache ===
CACHE_MAX_TTL = 12 * 60 * 60  # direct data
CRON_CACHE_MAX_TTL = 60 * 60  # cron-refreshed variant
ERROR_TTL = 5 * 60
REFRESH_HOURS = (1, 7, 13, 19)  # expected upstream publish times
REFRESH_TIMEZONE = "America/Argentina/Buenos_Aires"

# === Durable fallback store ===
FALLBACK_KEY_PREFIX = "bcra:"
FALLBACK_TTL = 7 * 24 * 60 * 60

# === Cache keys ===
PRIMARY_CACHE_NAMESPACE = "BCRADirect"

# Browser-like headers; the upstream blocks obvious automation clients
DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "application/json, text/plain, */*",
    "Accept-Language": "es-AR,es;q=0.9,en;q=0.8",
    "Content-Language": "es-AR",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}
