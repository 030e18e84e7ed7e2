"""Configuration constants for the git-drive web backend."""

# Routes are served under this prefix; "/" is left for a front-end
API_PREFIX = "/_api"

# SSE: browser reconnect hint (ms) and keepalive period for idle streams (s)
SSE_RETRY_MS = 5000
SSE_HEARTBEAT_SEC = 15
