"""Runtime configuration read from the environment."""

from __future__ import annotations

import os

# Analysis Service endpoint, including the versioned API prefix.
API_BASE_URL = os.getenv("CVPILOT_API_BASE_URL", "http://localhost:8080/api/v1")
REQUEST_TIMEOUT_SECONDS = float(os.getenv("CVPILOT_REQUEST_TIMEOUT", "30"))

# Job board whose pages the page reader understands.
SUPPORTED_HOST = os.getenv("CVPILOT_SUPPORTED_HOST", "hh.ru")

# Background message service used by HttpMessenger.
BACKGROUND_SERVICE_URL = os.getenv("CVPILOT_BACKGROUND_URL", "http://127.0.0.1:5050")

AUTH_GOOGLE_PATH = "/auth/google"
AUTH_REFRESH_PATH = "/auth/refresh"
ANALYSIS_MATCH_PATH = "/analysis/match"

# Daily quota advertised by the service.
DAILY_ANALYSIS_LIMIT = 3

MIN_RESUME_LENGTH = 50
PREVIEW_LENGTH = 200
