"""Environment configuration module.

Import this module before any other eventstaff module that reads environment
variables: it loads the .env file once and decides whether the service runs
in development or production.

Usage:
    from eventstaff.config.environment import IS_PRODUCTION_ENVIRONMENT

Development uses a local SQLite database, open CORS and interactive API docs.
Production expects DATABASE_URL to point at PostgreSQL and variables to be
set by the hosting platform; a .env file there is optional.
"""

import os
import logging
from dotenv import load_dotenv

# Variables already set in the process win over the .env file
load_dotenv(override=False)

VALID_ENVIRONMENTS = ('development', 'production')

env_setting = os.environ.get('ENVIRONMENT', '').strip().lower()
if env_setting not in VALID_ENVIRONMENTS:
    logging.warning(
        f"ENVIRONMENT '{env_setting}' is invalid or not set, expected one of "
        f"{', '.join(VALID_ENVIRONMENTS)}. Running as development."
    )
    env_setting = 'development'

ENVIRONMENT_NAME = env_setting
IS_PRODUCTION_ENVIRONMENT = ENVIRONMENT_NAME == 'production'

__all__ = ['ENVIRONMENT_NAME', 'IS_PRODUCTION_ENVIRONMENT']
