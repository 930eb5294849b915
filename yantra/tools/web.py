"""The web_fetch tool: performs an HTTP request and returns status and body."""

from __future__ import annotations

import json
from typing import Any

import httpx

from yantra.messages import FunctionDecl, SafetyTier, Tool, ToolExecutionContext
from yantra.tools.schema import Prop, SchemaType, schema

WEB_FETCH_TIMEOUT = 30.0
WEB_FETCH_MAX_BODY = 1024 * 1024

_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD"]


def _load_arguments(arguments: str | bytes) -> dict[str, Any]:
    try:
        data = json.loads(arguments)
    except (json.JSONDecodeError, TypeError) as exc:
        raise ValueError(f"invalid input: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("invalid input: arguments must be a JSON object")
    for key in ("url", "method", "body", "headers"):
        value = data.get(key)
        if value is not None and not isinstance(value, str):
            raise ValueError(f"invalid input: {key} must be of type str")
    return data


def _parse_headers(text: str) -> dict[str, str]:
    try:
        headers = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"invalid headers JSON: {exc}") from exc
    if headers is None:
        return {}
    if not isinstance(headers, dict) or not all(isinstance(v, str) for v in headers.values()):
        raise ValueError("invalid headers JSON: expected an object of strings")
    return headers


class WebFetchTool(Tool):
    """Fetches a URL and reports the status code and (size-limited) body."""

    name = "web_fetch"
    description = "Fetch a URL via HTTP and return the status code and response body."
    safety_tier = SafetyTier.SIDE_EFFECTING
    timeout = WEB_FETCH_TIMEOUT

    def decl(self) -> FunctionDecl:
        return FunctionDecl(
            name=self.name,
            description=self.description,
            parameters=schema(
                Prop("url", SchemaType.STRING, "URL to fetch", True),
                Prop("method", SchemaType.STRING, "HTTP method (default GET)", enum=list(_METHODS)),
                Prop("body", SchemaType.STRING, "Request body (for POST/PUT/PATCH)"),
                Prop("headers", SchemaType.STRING, "Headers as JSON object string"),
            ),
        )

    async def execute(self, arguments: str, exec_ctx: ToolExecutionContext) -> str:
        data = _load_arguments(arguments)
        url = data.get("url") or ""
        method = (data.get("method") or "").upper() or "GET"
        body_text = data.get("body") or ""
        content = body_text.encode("utf-8")[:WEB_FETCH_MAX_BODY] if body_text else None

        async with httpx.AsyncClient(timeout=WEB_FETCH_TIMEOUT) as client:
            try:
                request = client.build_request(method, url, content=content)
            except (httpx.InvalidURL, ValueError, TypeError) as exc:
                raise ValueError(f"invalid request: {exc}") from exc

            headers_text = data.get("headers") or ""
            if headers_text:
                for key, value in _parse_headers(headers_text).items():
                    request.headers[key] = value

            try:
                response = await client.send(request, stream=True)
            except httpx.HTTPError as exc:
                raise ConnectionError(f"fetch error: {exc}") from exc

            try:
                received = bytearray()
                async for chunk in response.aiter_raw():
                    received.extend(chunk[: WEB_FETCH_MAX_BODY - len(received)])
                    if len(received) >= WEB_FETCH_MAX_BODY:
                        break
            except httpx.HTTPError as exc:
                raise OSError(f"read body error: {exc}") from exc
            finally:
                await response.aclose()

        text = bytes(received).decode("utf-8", errors="replace")
        return f"status: {response.status_code}\n\n{text}"