"""Onfido API client with error normalization."""

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from kyc_relay.config import settings
from kyc_relay.exceptions import ProviderError

logger = logging.getLogger(__name__)


def _parse_body(response: httpx.Response) -> Optional[Any]:
    """Decode a JSON body, treating empty or malformed bodies as absent."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None


def _error_message(status: int, payload: Optional[Any]) -> str:
    """Pull a human readable message out of an Onfido error body."""
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if payload.get("message"):
            return str(payload["message"])
    return f"provider error {status}"


class OnfidoClient:
    """Thin async wrapper around the Onfido REST API."""

    def __init__(
        self,
        api_token: Optional[str] = None,
        base_url: Optional[str] = None,
        api_version: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the client from settings, with per-instance overrides."""
        self.api_token = api_token or settings.ONFIDO_API_TOKEN
        self.base_url = (base_url or settings.ONFIDO_API_BASE).rstrip("/")
        self.api_version = api_version or settings.ONFIDO_API_VERSION
        self.timeout = timeout if timeout is not None else settings.ONFIDO_TIMEOUT_SECONDS
        self.transport = transport

    def _build_headers(self) -> Dict[str, str]:
        """Build HTTP headers for Onfido."""
        return {
            "Authorization": f"Token token={self.api_token}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{self.api_version}{path}"

    async def request(
        self,
        path: str,
        method: str = "GET",
        body: Optional[Dict[str, Any]] = None,
    ) -> Optional[Any]:
        """
        Call the Onfido API.

        Args:
            path: Path below the versioned base URL, starting with "/"
            method: HTTP method
            body: Optional JSON body

        Returns:
            Parsed JSON body, or None when the body is empty or not JSON

        Raises:
            ProviderError: On non-2xx responses, timeouts and transport errors
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.request(
                    method,
                    self._url(path),
                    headers=self._build_headers(),
                    json=body,
                )
        except httpx.TimeoutException:
            logger.warning(f"Onfido {method} {path} timed out after {self.timeout}s")
            raise ProviderError(504, "provider timeout")
        except httpx.TransportError as e:
            logger.warning(f"Onfido {method} {path} transport error: {e}")
            raise ProviderError(502, f"provider unreachable: {e}")

        payload = _parse_body(response)

        if not response.is_success:
            message = _error_message(response.status_code, payload)
            logger.warning(f"Onfido {method} {path} failed with {response.status_code}: {message}")
            raise ProviderError(response.status_code, message, payload)

        logger.info(f"Onfido {method} {path} -> {response.status_code}")
        return payload

    async def create_applicant(self, data: Dict[str, Any]) -> Optional[Any]:
        """Create an applicant."""
        return await self.request("/applicants", method="POST", body=data)

    async def get_applicant(self, applicant_id: str) -> Optional[Any]:
        """Retrieve an applicant by id."""
        return await self.request(f"/applicants/{quote(applicant_id, safe='')}")

    async def create_workflow_run(self, data: Dict[str, Any]) -> Optional[Any]:
        """Start a workflow run; the response carries the SDK token."""
        return await self.request("/workflow_runs", method="POST", body=data)

    async def get_workflow_run(self, run_id: str) -> Optional[Any]:
        """Retrieve the live state of a workflow run."""
        return await self.request(f"/workflow_runs/{quote(run_id, safe='')}")
