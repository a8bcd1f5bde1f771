"""Application settings read from the environment."""

import os

from . import environment


class Config:
    # Database
    DATABASE_URL = os.getenv('DATABASE_URL', '')
    SQLITE_PATH = os.getenv('SQLITE_PATH', '')

    # Serverless notification functions (email dispatch)
    FUNCTIONS_BASE_URL = os.getenv('FUNCTIONS_BASE_URL', '')
    FUNCTIONS_API_KEY = os.getenv('FUNCTIONS_API_KEY', '')
    NOTIFICATION_TIMEOUT = int(os.getenv('NOTIFICATION_TIMEOUT', '10'))

    # Shared secret with the session provider
    AUTH_SIGNING_SECRET = os.getenv('AUTH_SIGNING_SECRET', '')

    # Staffing
    EVENTS_PER_PAGE = int(os.getenv('EVENTS_PER_PAGE', '5'))
    DEFAULT_EVENT_DURATION_HOURS = int(os.getenv('DEFAULT_EVENT_DURATION_HOURS', '4'))
    LOCAL_TIMEZONE = os.getenv('LOCAL_TIMEZONE', 'Europe/Berlin')

    # Quote requests
    OFFER_NUMBER_PREFIX = os.getenv('OFFER_NUMBER_PREFIX', 'ANG')

    ENVIRONMENT_NAME = environment.ENVIRONMENT_NAME

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO' if environment.IS_PRODUCTION_ENVIRONMENT else 'DEBUG').upper()
