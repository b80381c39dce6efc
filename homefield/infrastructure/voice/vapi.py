"""
VAPI Voice Call Client
Starts outbound AI phone calls through the VAPI REST API
"""
import logging
import re
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)

# Readable phrasing the assistant speaks back to the homeowner
ROOFING_CONCERN_LABELS = {
    "storm_damage": "storm or hail damage",
    "leak": "a leak or water damage",
    "age": "the roof getting old",
    "insurance": "help with an insurance claim",
    "selling": "selling their home",
    "checkup": "just wanting it checked out",
}


class VapiCallError(Exception):
    """VAPI rejected the call request."""
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


def format_phone_e164(phone: str) -> str:
    """Digits only, +1 for 10-digit US numbers, + prefix otherwise."""
    digits = re.sub(r"\D", "", phone or "")
    if len(digits) == 10:
        return "+1" + digits
    return "+" + digits


def describe_concern(concern: Optional[str]) -> Optional[str]:
    if concern is None:
        return None
    return ROOFING_CONCERN_LABELS.get(concern, concern)


class VapiClient:
    """
    Minimal VAPI client for phone calls.

    Setup Required:
    - VAPI_API_KEY
    - VAPI_ROOFING_ASSISTANT_ID (or VAPI_ASSISTANT_ID)
    - VAPI_PHONE_NUMBER_ID
    """

    def __init__(
        self,
        api_key: str,
        phone_number_id: str,
        base_url: str = "https://api.vapi.ai",
        timeout: float = 10.0,
    ):
        self.api_key = api_key
        self.phone_number_id = phone_number_id
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def start_phone_call(
        self,
        assistant_id: str,
        customer_number: str,
        customer_name: Optional[str] = None,
        variable_values: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Trigger an outbound call.

        Returns:
            VAPI call id

        Raises:
            VapiCallError: On transport failure or a non-2xx response
        """
        payload = {
            "assistantId": assistant_id,
            "phoneNumberId": self.phone_number_id,
            "customer": {
                "number": customer_number,
                "name": customer_name,
            },
            "assistantOverrides": {
                "variableValues": variable_values or {},
            },
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/call/phone",
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                )
        except httpx.HTTPError as e:
            raise VapiCallError(f"VAPI request failed: {e}") from e

        if response.status_code >= 400:
            logger.error(f"VAPI error: {response.text}")
            raise VapiCallError(response.text, status_code=response.status_code)

        call_id = response.json().get("id")
        logger.info(f"VAPI call triggered successfully: {call_id}")
        return call_id
