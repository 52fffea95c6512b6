"""Internal constants shared across the package."""

APP_NAME = "n26a-bt"
BUILD_MESSAGE = "version 1.1 n26a-bt"

AUTH_URL = "https://n26a_backend.mirai-th-kakenn.workers.dev/auth/login"
LOG_URL = "https://n26a_backend.mirai-th-kakenn.workers.dev/number_of_people"

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 2829

CREDENTIALS_FILENAME = "credentials.json"

# ------------------------------------------------------------------
# Scan cycle
# ------------------------------------------------------------------

#: Observations weaker than this (dBm) are ignored. The boundary is inclusive.
RSSI_THRESHOLD = -65
#: Seconds the radio listens per cycle.
SCAN_WINDOW_S = 10.0
#: Seconds slept between cycles (cycle period is roughly window + interval).
CYCLE_INTERVAL_S = 50.0
#: Seconds to wait for the scan to exit after the stop command returned.
STOP_GRACE_S = 5.0

# ------------------------------------------------------------------
# Occupancy reporting
# ------------------------------------------------------------------

#: A report is sent when ``cycle_index % REPORT_EVERY == 0``.
REPORT_EVERY = 5
REPORT_TIMEOUT_S = 60.0
SOURCE_TYPE_ID = 3

# ------------------------------------------------------------------
# Broadcast
# ------------------------------------------------------------------

SUBSCRIBER_BUFFER = 1
