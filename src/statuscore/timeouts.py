"""
Timeout, retry and polling constants for StatusCore.

Centralizes the values shared by the TSDB client, the status dashboard
client and the reporting workflow.  Every value here is a default; the
monitoring definitions may override the reporter knobs.
"""

from __future__ import annotations

# =============================================================================
# HTTP Client Timeouts
# =============================================================================

# Timeout for every status dashboard request
DASHBOARD_REQUEST_TIMEOUT_S = 10.0

# Timeout for TSDB render queries
TSDB_REQUEST_TIMEOUT_S = 10.0

# Timeout for reporter queries against a remote health API
HEALTH_API_TIMEOUT_S = 10.0

# =============================================================================
# Startup Cache Load
# =============================================================================

# Attempts to fetch dashboard components before refusing to start
STARTUP_CACHE_MAX_ATTEMPTS = 3

# Fixed delay between startup attempts
STARTUP_CACHE_RETRY_DELAY_S = 60.0

# =============================================================================
# Polling
# =============================================================================

# Sleep between reporter polling cycles
REPORTER_POLL_INTERVAL_S = 60.0

# Default health query window (Graphite relative time syntax)
HEALTH_QUERY_FROM = "-5min"
HEALTH_QUERY_TO = "-2min"

# Default number of datapoints requested per series
DEFAULT_MAX_DATA_POINTS = 100
