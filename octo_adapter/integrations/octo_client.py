"""
OCTO HTTP client: one instance per set of supplier credentials.

Every call carries the bearer token, the optional Octo-Env / Accept-Language headers
and the Octo-Capabilities list. Non-2xx answers and network failures become
SupplierError with the supplier's own message when it sent one.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from octo_adapter.config import PluginConfig
from octo_adapter.core.errors import SupplierError, TranslationError
from octo_adapter.core.schemas import Credentials

logger = logging.getLogger(__name__)

# Where suppliers put a human readable error in the JSON body, in order of preference.
ERROR_MESSAGE_KEYS = ("errorMessage", "error", "message")


def build_headers(credentials: Credentials, capabilities: tuple[str, ...]) -> dict[str, str]:
    headers = {"Authorization": f"Bearer {credentials.api_key}"}
    if credentials.octo_env:
        headers["Octo-Env"] = credentials.octo_env
    if credentials.accept_language:
        headers["Accept-Language"] = credentials.accept_language
    headers["Content-Type"] = "application/json"
    headers["Octo-Capabilities"] = ",".join(capabilities)
    return headers


def extract_error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ERROR_MESSAGE_KEYS:
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return f"HTTP {response.status_code}"


class OctoClient:
    """
    Thin async wrapper around httpx for one supplier connection.

    Usage:
        async with OctoClient(credentials, config) as client:
            products = await client.get("/products")
    """

    def __init__(
        self,
        credentials: Credentials,
        config: PluginConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.credentials = credentials
        self.config = config
        self.base_url = (credentials.endpoint or config.endpoint).rstrip("/")
        self.headers = build_headers(credentials, config.capabilities)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            # Retries are a transport concern; the orchestrators never retry.
            transport = self._transport or httpx.AsyncHTTPTransport(retries=self.config.http_retries)
            self._client = httpx.AsyncClient(transport=transport, timeout=self.config.http_timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self) -> "OctoClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def request(
        self,
        method: str,
        path: str,
        params: dict | None = None,
        json: dict | None = None,
    ) -> Any:
        """
        Call the supplier and return the decoded JSON body (None for empty bodies).

        Raises:
            SupplierError: network failure or non-2xx status.
            TranslationError: 2xx answer that is not JSON.
        """
        url = f"{self.base_url}{path}"
        logger.debug("OCTO %s %s", method.upper(), path)
        try:
            response = await self.client.request(
                method.upper(),
                url,
                params=params,
                json=json,
                headers=self.headers,
            )
        except httpx.HTTPError as e:
            logger.error("OCTO %s %s failed: %s", method.upper(), path, e)
            raise SupplierError(f"Supplier request failed: {e}") from e

        if not response.is_success:
            message = extract_error_message(response)
            logger.error("OCTO %s %s -> %s: %s", method.upper(), path, response.status_code, message)
            raise SupplierError(message, supplier_status=response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise TranslationError(f"Supplier returned a non-JSON body for {method.upper()} {path}") from e

    async def get(self, path: str, params: dict | None = None) -> Any:
        return await self.request("get", path, params=params)

    async def post(self, path: str, json: dict | None = None) -> Any:
        return await self.request("post", path, json=json)

    async def patch(self, path: str, json: dict | None = None) -> Any:
        return await self.request("patch", path, json=json)

    async def delete(self, path: str, json: dict | None = None) -> Any:
        return await self.request("delete", path, json=json)
