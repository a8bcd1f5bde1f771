"""Client for the serverless notification functions that send e-mail.

Dispatch is fire-and-forget: a failed or unconfigured call is logged and
reported as False, never raised into the request that triggered it.
"""

import logging
from typing import Any, Dict, Optional

import requests

from ..config.settings import Config

logger = logging.getLogger(__name__)

OFFER_NOTIFICATION = 'send-offer-notification'
OFFER_CONFIRMATION = 'send-offer-confirmation'
CONTACT_NOTIFICATION = 'send-contact-notification'


class NotificationClient:
    """Posts JSON payloads to named notification functions."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[int] = None,
    ):
        self.base_url = (base_url if base_url is not None else Config.FUNCTIONS_BASE_URL).rstrip('/')
        self.api_key = api_key if api_key is not None else Config.FUNCTIONS_API_KEY
        self.timeout = timeout or Config.NOTIFICATION_TIMEOUT
        self.headers = {
            'Content-Type': 'application/json',
            'Accept': 'application/json',
        }
        if self.api_key:
            self.headers['Authorization'] = f'Bearer {self.api_key}'

    def send(self, function_name: str, payload: Dict[str, Any]) -> bool:
        """
        Invoke a notification function.

        Args:
            function_name: Name of the function, appended to the base URL
            payload: JSON body

        Returns:
            bool: True if the function accepted the call
        """
        if not self.base_url:
            logger.warning(f"FUNCTIONS_BASE_URL not set, skipping {function_name}")
            return False

        url = f"{self.base_url}/{function_name}"
        try:
            response = requests.post(url, json=payload, headers=self.headers, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Error calling {function_name}: {e}")
            return False

        logger.info(f"Dispatched {function_name}")
        return True
