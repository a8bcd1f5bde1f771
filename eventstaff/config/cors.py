"""CORS configuration for the FastAPI application."""

import os

from .environment import IS_PRODUCTION_ENVIRONMENT

# The booking site's own domains; CORS_ORIGINS (comma separated) replaces them
DEFAULT_PRODUCTION_ORIGINS = [
    "https://nion-events.de",
    "https://www.nion-events.de",
]


def _production_origins():
    configured = os.environ.get('CORS_ORIGINS', '')
    origins = [origin.strip() for origin in configured.split(',') if origin.strip()]
    return origins or DEFAULT_PRODUCTION_ORIGINS


# Development allows any origin; credentials are then off since browsers reject "*" with them
ALLOWED_ORIGINS = _production_origins() if IS_PRODUCTION_ENVIRONMENT else ["*"]

ALLOWED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

# Identity headers forwarded by the session provider
ALLOWED_HEADERS = [
    "Content-Type",
    "Accept",
    "X-User-Id",
    "X-User-Signature",
]

CORS_CONFIG = {
    "allow_origins": ALLOWED_ORIGINS,
    "allow_credentials": IS_PRODUCTION_ENVIRONMENT,
    "allow_methods": ALLOWED_METHODS,
    "allow_headers": ALLOWED_HEADERS,
    "max_age": 3600,
}
