# core/querier.py
"""
CoreQuerier
===========
Thin async HTTP client for the auth core. Every durable piece of the
passwordless flow (codes, devices, users, attempt counters) lives in the
core; this module only ships JSON back and forth.

  send_post_request(path, body)   → dict
  send_get_request(path, params)  → dict
  send_put_request(path, body)    → dict

Any transport failure, non-200 status, or non-object JSON body raises
CoreRequestError. Nothing is retried here.
"""

import json
import logging
from typing import Any

import httpx

from passwordless_engine.core.exceptions import CoreRequestError

logger = logging.getLogger(__name__)

RECIPE_ID = "passwordless"


class CoreQuerier:
    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        rid: str = RECIPE_ID,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.rid = rid
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    def _headers(self, path: str) -> dict[str, str]:
        headers = {"content-type": "application/json; charset=utf-8"}
        if self.api_key:
            headers["api-key"] = self.api_key
        if path.startswith("/recipe") and self.rid:
            headers["rid"] = self.rid
        return headers

    async def send_post_request(
        self,
        path: str,
        body: dict[str, Any] | None = None,
        user_context: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        return await self._send("POST", path, json_body=body or {})

    async def send_get_request(
        self,
        path: str,
        params: dict[str, str] | None = None,
        user_context: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        return await self._send("GET", path, params=params or {})

    async def send_put_request(
        self,
        path: str,
        body: dict[str, Any] | None = None,
        user_context: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        return await self._send("PUT", path, json_body=body or {})

    async def _send(
        self,
        method: str,
        path: str,
        json_body: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        if not path.startswith("/"):
            path = f"/{path}"

        logger.debug(f"[Core] {method} {path}")
        try:
            response = await self.client.request(
                method,
                path,
                json=json_body,
                params=params,
                headers=self._headers(path),
            )
        except httpx.HTTPError as exc:
            logger.error(f"[Core] {method} {path} failed: {exc}")
            raise CoreRequestError(
                f"Error while querying the auth core at path '{path}': {exc}", path=path
            ) from exc

        if response.status_code != 200:
            raise CoreRequestError(
                f"Auth core threw an error for a request to path: '{path}' "
                f"with status code: {response.status_code} and message: {response.text}",
                path=path,
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except json.JSONDecodeError as exc:
            raise CoreRequestError(
                f"Auth core returned a non JSON body for path '{path}'",
                path=path,
                status_code=response.status_code,
            ) from exc

        if not isinstance(payload, dict):
            raise CoreRequestError(
                f"Auth core returned an unexpected JSON body for path '{path}'",
                path=path,
                status_code=response.status_code,
            )
        return payload
