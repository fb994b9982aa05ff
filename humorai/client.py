import logging
from typing import Any, Literal

import httpx
from httpx import Response, Timeout
from loguru import logger

from humorai.exceptions import APIError, NetworkError

# Suppress verbose httpx debug logging
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

USER_AGENT = 'humorai-python/0.1.0'

SENSITIVE_HEADERS = {'authorization', 'apikey', 'cookie', 'set-cookie'}
SENSITIVE_KEYS = {'password', 'token', 'access_token', 'refresh_token', 'secret'}

HttpMethod = Literal['GET', 'POST', 'PATCH', 'DELETE']


def _sanitize_for_logging(data: dict | None, sensitive_keys: set[str] | None = None) -> dict[str, Any] | None:
    """Remove sensitive data from dict before logging."""
    if data is None:
        return None
    sensitive_keys = sensitive_keys or SENSITIVE_KEYS
    result: dict[str, Any] = {}
    for key, value in data.items():
        if key.lower() in sensitive_keys:
            result[key] = '[REDACTED]'
        elif isinstance(value, dict):
            result[key] = _sanitize_for_logging(value, sensitive_keys)
        else:
            result[key] = value
    return result


def _sanitize_headers(headers: dict | None) -> dict | None:
    """Remove sensitive headers before logging."""
    if headers is None:
        return None
    return {k: '[REDACTED]' if k.lower() in SENSITIVE_HEADERS else v for k, v in headers.items()}


def _handle_response_error(response: Response) -> None:
    """Check response status and raise APIError carrying the status and body text."""
    if response.is_success:
        return
    body = response.text
    try:
        error_body = response.json()
        error_msg = error_body.get('message') or error_body.get('error') or body
    except Exception:
        error_msg = body
    raise APIError(f"HTTP {response.status_code}: {error_msg}", status_code=response.status_code, body=body)


class Client:
    """
    JSON-over-HTTP client bound to one base URL.

    Used for both the captioning service and the data store. Credentials are either
    installed as default headers (data store) or passed per request (captioning service).
    """

    def __init__(
        self,
        base_url: str,
        headers: dict[str, str] | None = None,
        timeout: float = 20.0
    ) -> None:
        self.base_url = base_url
        self.http2_client = httpx.AsyncClient(
            http2=True,
            base_url=base_url,
            headers={
                'accept': 'application/json',
                'user-agent': USER_AGENT,
                'content-type': 'application/json; charset=utf-8',
                **(headers or {}),
            },
            timeout=Timeout(timeout=timeout)
        )

    async def __aenter__(self) -> "Client":
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self.http2_client.aclose()

    async def _request(
        self,
        method: HttpMethod,
        url: str,
        data: dict[str, Any] | list[Any] | None = None,
        query_params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | Timeout | None = None
    ) -> Any:
        """
        Make an HTTP request with common error handling and logging.

        :param method: HTTP method (GET, POST, PATCH, DELETE)
        :param url: Request URL, relative to the base URL
        :param data: JSON body data (for POST/PATCH)
        :param query_params: Query parameters
        :param headers: Additional headers
        :param timeout: Optional per-request timeout (seconds or Timeout object)
        :return: JSON response body, or None when the response has no body
        :raises NetworkError: On connection/timeout errors
        :raises APIError: On HTTP errors or non-JSON responses
        """
        # Filter out None values from query params
        if query_params:
            query_params = {k: v for k, v in query_params.items() if v is not None}

        logger.debug(
            f'{method} request to {url}',
            data=_sanitize_for_logging(data) if isinstance(data, dict) else data,
            query_params=query_params,
            headers=_sanitize_headers(headers)
        )

        try:
            request_kwargs: dict[str, Any] = {
                'url': url,
                'params': query_params,
                'headers': headers,
            }
            if method in ('POST', 'PATCH'):
                request_kwargs['json'] = data
            if timeout is not None:
                request_kwargs['timeout'] = timeout

            response = await self.http2_client.request(method, **request_kwargs)
        except httpx.TimeoutException as e:
            raise NetworkError(f"Request timed out: {e}")
        except httpx.RequestError as e:
            raise NetworkError(f"Network error: {e}")

        _handle_response_error(response)

        # PostgREST writes with `Prefer: return=minimal` answer 201/204 without a body
        if not response.content:
            logger.debug(f'Response ({response.status_code}), empty body')
            return None

        try:
            json_body = response.json()
            logger.debug(f'Response ({response.status_code}), body: {json_body}')
        except Exception:
            logger.debug(f'Response ({response.status_code}), body: {response.text}')
            raise APIError(
                f'Non-JSON response ({response.status_code}): {response.text}',
                status_code=response.status_code,
                body=response.text
            )

        return json_body

    async def get(
        self,
        url: str,
        query_params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | Timeout | None = None
    ) -> Any:
        return await self._request('GET', url, query_params=query_params, headers=headers, timeout=timeout)

    async def post(
        self,
        url: str,
        data: dict[str, Any] | list[Any] | None = None,
        query_params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | Timeout | None = None
    ) -> Any:
        return await self._request('POST', url, data=data, query_params=query_params, headers=headers, timeout=timeout)

    async def patch(
        self,
        url: str,
        data: dict[str, Any] | None = None,
        query_params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | Timeout | None = None
    ) -> Any:
        return await self._request('PATCH', url, data=data, query_params=query_params, headers=headers, timeout=timeout)

    async def delete(
        self,
        url: str,
        query_params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | Timeout | None = None
    ) -> Any:
        return await self._request('DELETE', url, query_params=query_params, headers=headers, timeout=timeout)

    def add_default_headers(self, headers: dict) -> None:
        self.http2_client.headers.update(headers)
