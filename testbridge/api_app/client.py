"""
JSON API client used by the Azure DevOps handler
"""
import asyncio
import json
import logging
from typing import Any, Dict, Optional

import requests

from testbridge.exceptions import ApiRequestError

logger = logging.getLogger(__name__)


def _send(url: str, method: str, headers: Optional[Dict[str, str]], body: Any, timeout: float) -> Any:
    payload = json.dumps(body) if body is not None else None
    response = requests.request(method, url, headers=headers, data=payload, timeout=timeout)

    logger.debug(f"{method} {url} -> {response.status_code}")

    if not response.ok:
        raise ApiRequestError(response.status_code, response.text, url)
    if not response.content:
        return None
    return response.json()


async def api_request(url: str, method: str = "GET", headers: Optional[Dict[str, str]] = None,
                      body: Any = None, timeout: float = 30) -> Any:
    """
    Make an API request and return the decoded JSON body

    The blocking request runs in a worker thread so several calls can be
    awaited together with asyncio.gather.

    Args:
        url: Full request URL
        method: HTTP method
        headers: Request headers
        body: Object serialized to JSON as the request body
        timeout: Seconds to wait for the server

    Returns:
        Decoded JSON body, None when the response has no content

    Raises:
        ApiRequestError: The response status is not 2xx
    """
    try:
        return await asyncio.to_thread(_send, url, method.upper(), headers, body, timeout)
    except (ApiRequestError, requests.RequestException, ValueError) as e:
        logger.error(f"Error in api_request: {e}")
        raise
