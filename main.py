"""Main application entry point."""

import os

import uvicorn

from eventstaff.config.environment import IS_PRODUCTION_ENVIRONMENT

APP = "eventstaff.api.app:app"


def run() -> None:
    host = os.environ.get('HOST', '0.0.0.0')
    port = int(os.environ.get('PORT', '8000'))

    if not IS_PRODUCTION_ENVIRONMENT:
        # Development mode - reload watches the package, so uvicorn needs the import string
        uvicorn.run(APP, host=host, port=port, reload=True, reload_dirs=["eventstaff"], log_level="debug")
    else:
        # Production mode - several workers behind the platform's proxy
        uvicorn.run(
            APP,
            host=host,
            port=port,
            reload=False,
            workers=int(os.environ.get('WEB_CONCURRENCY', '4')),
            log_level="info",
            proxy_headers=True,
            forwarded_allow_ips="*"
        )


if __name__ == "__main__":
    run()
