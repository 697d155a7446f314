"""
Shared constants used by the probe client, the probe server and the CLI.

Centralises payload sizes, routes, unit divisors and tunables so they live
in exactly one place.
"""

# ---------------------------------------------------------------------------
# Probe payload sizes
# ---------------------------------------------------------------------------

DOWNLOAD_SIZE_BYTES = 10 * 1024 * 1024   # 10 MiB download probe
UPLOAD_SIZE_BYTES = 5 * 1024 * 1024      # 5 MiB upload probe
MIN_PAYLOAD_SIZE = 0
MAX_PAYLOAD_SIZE = 1024 * 1024 * 1024    # 1 GiB

# ---------------------------------------------------------------------------
# Probe server routes
# ---------------------------------------------------------------------------

DOWNLOAD_PATH = "/probe/download"
UPLOAD_PATH = "/probe/upload"
HEALTH_PATH = "/health"

# Routes used by the first deployment of the benchmark page
LEGACY_DOWNLOAD_PATH = "/api/download"
LEGACY_UPLOAD_PATH = "/api/upload"

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8080
DEFAULT_BASE_URL = f"http://{DEFAULT_HOST}:{DEFAULT_PORT}"

OCTET_STREAM = "application/octet-stream"

# ---------------------------------------------------------------------------
# Timing
# ---------------------------------------------------------------------------

DEFAULT_TIMEOUT = 60.0           # seconds per measurement phase
MIN_TIMEOUT = 0.1
MAX_TIMEOUT = 600.0
DEFAULT_INTERVAL = 0.0           # seconds between repeated sessions

# ---------------------------------------------------------------------------
# Data transfer
# ---------------------------------------------------------------------------

CHUNK_SIZE = 256 * 1024          # 256 KB read size when draining bodies

# ---------------------------------------------------------------------------
# Units
# ---------------------------------------------------------------------------

MEBIBIT = 1024 * 1024            # divisor used for reported Mbps
DECIMAL_MEGABIT = 1_000_000
