"""Shared HTTP request helper with rate-limit and server-error retries."""
import time
from typing import Any, Type

import requests

from report_relay import settings
from report_relay.errors import TransportError
from report_relay.logging_conf import logger


def request(
    session: requests.Session,
    method: str,
    url: str,
    error_class: Type[TransportError] = TransportError,
    retry_count: int = 0,
    idempotent: bool = True,
    **kwargs,
) -> requests.Response:
    """Make a request with retry logic. Raises `error_class` when it gives up.

    Non-idempotent requests (status posts, media uploads) are only retried on
    429, which the server sends before doing any work. A timeout or server
    error on such a request raises at once, since the server may have acted.
    """
    kwargs.setdefault("timeout", settings.REQUEST_TIMEOUT)
    try:
        response = session.request(method=method, url=url, **kwargs)

        if response.status_code == 429 and retry_count < settings.MAX_RETRIES:
            retry_after = int(response.headers.get("Retry-After", 60))
            logger.warning(f"Rate limited. Waiting {retry_after}s...")
            time.sleep(retry_after)
            return request(session, method, url, error_class, retry_count + 1, idempotent, **kwargs)

        if response.status_code >= 500 and idempotent and retry_count < settings.MAX_RETRIES:
            wait_time = 2 ** retry_count
            logger.warning(f"Server error {response.status_code}. Retrying in {wait_time}s...")
            time.sleep(wait_time)
            return request(session, method, url, error_class, retry_count + 1, idempotent, **kwargs)

        response.raise_for_status()
        return response

    except requests.exceptions.HTTPError as e:
        status = e.response.status_code if e.response is not None else None
        raise error_class(f"{method} {url} failed: {e}", status_code=status) from e
    except requests.exceptions.RequestException as e:
        if idempotent and retry_count < settings.MAX_RETRIES and isinstance(
            e, (requests.exceptions.ConnectionError, requests.exceptions.Timeout)
        ):
            wait_time = 2 ** retry_count
            time.sleep(wait_time)
            return request(session, method, url, error_class, retry_count + 1, idempotent, **kwargs)
        raise error_class(f"{method} {url} failed: {e}") from e


def json_body(response: requests.Response, error_class: Type[TransportError] = TransportError) -> Any:
    """Decode a JSON response body. Raises `error_class` on a non-JSON body."""
    try:
        return response.json()
    except ValueError as e:
        raise error_class(f"{response.url} returned no JSON: {e}") from e
