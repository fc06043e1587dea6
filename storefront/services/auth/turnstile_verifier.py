"""
Cloudflare Turnstile verification.

Confirms the human-challenge token posted with the register and login
forms before either flow touches the database.
"""

import logging
from typing import Optional

import httpx

from config.turnstile_config import TURNSTILE_VERIFY_URL, TURNSTILE_TIMEOUT

logger = logging.getLogger(__name__)


class TurnstileVerifier:
    """
    Client for the Turnstile siteverify endpoint.
    """

    def __init__(
        self,
        secret_key: str,
        verify_url: str = TURNSTILE_VERIFY_URL,
        timeout: float = TURNSTILE_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize TurnstileVerifier.

        Args:
            secret_key: Turnstile secret key
            verify_url: siteverify endpoint
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self._secret_key = secret_key
        self._verify_url = verify_url
        self._timeout = timeout
        self._transport = transport

    async def verify(self, token: Optional[str], client_ip: Optional[str] = None) -> dict:
        """
        Verify a challenge token.

        Args:
            token: Value of the widget's response field
            client_ip: Remote address of the submitting browser

        Returns:
            The siteverify JSON; ``{"success": False}`` on missing token or
            any transport error
        """
        if not token:
            return {"success": False, "error-codes": ["missing-input-response"]}

        form = {"secret": self._secret_key, "response": token}
        if client_ip:
            form["remoteip"] = client_ip

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.post(self._verify_url, data=form)
                response.raise_for_status()
                result = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Turnstile verification error: {e}")
            return {"success": False}

        if not result.get("success"):
            logger.warning(f"Turnstile rejected token: {result.get('error-codes')}")

        return result
