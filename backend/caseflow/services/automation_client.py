"""Automation Client - Calls the external automation endpoint (scoring, extraction)"""
from typing import Any, Dict, Optional
import httpx

from ..config.settings import settings
from ..domain.errors import AutomationError
from ..utils.logger import get_logger, get_correlation_id

logger = get_logger(__name__)


class AutomationClient:
    """
    HTTP client for the automation service

    ``call(tenant_id, case_id, endpoint, params)`` POSTs to
    ``{base_url}/{endpoint}``; the response body is treated as opaque.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None
    ):
        self.base_url = (base_url or settings.automation_base_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.automation_api_key
        self.timeout = timeout or settings.automation_timeout_seconds
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        correlation_id = get_correlation_id()
        if correlation_id:
            headers["X-Correlation-Id"] = correlation_id
        return headers

    def call(
        self,
        tenant_id: str,
        case_id: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None
    ) -> Any:
        """
        Invoke an automation endpoint

        Raises:
            AutomationError: On transport failure or a non-2xx response
        """
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        payload = {"tenant_id": tenant_id, "case_id": case_id, "params": params or {}}

        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(url, json=payload, headers=self._headers())
        except httpx.HTTPError as e:
            raise AutomationError(
                f"Automation endpoint '{endpoint}' unreachable: {e}",
                details={"endpoint": endpoint, "case_id": case_id}
            ) from e

        if response.status_code >= 400:
            raise AutomationError(
                f"Automation endpoint '{endpoint}' returned {response.status_code}",
                details={
                    "endpoint": endpoint,
                    "case_id": case_id,
                    "status_code": response.status_code,
                    "body": response.text[:500]
                }
            )

        logger.info(
            f"Automation endpoint '{endpoint}' succeeded",
            extra={"tenant_id": tenant_id, "case_id": case_id}
        )
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text
