"""
HTTP verb helpers on top of a Playwright APIRequestContext.

Every helper sends a single request, raises ApiRequestError when the response
is not 2xx and otherwise returns the raw APIResponse.

Usage:

    api_context = await playwright.request.new_context(base_url=get_api_base_url())
    response = await do_post(api_context, "/api/books", data={"isbn": "1234", "page": 23})
    book = await response.json()
"""
import logging
from typing import Any, Dict, Optional

from playwright.async_api import APIRequestContext, APIResponse

from testbridge.exceptions import ApiRequestError

logger = logging.getLogger(__name__)


async def check_status_code(response: APIResponse):
    """Raise with the status code and body unless the status is 2xx"""
    received_status = response.status
    if not response.ok:
        raise ApiRequestError(received_status, await response.text(), response.url)
    logger.info(f"HTTP Status: {received_status}")


async def do_delete(context: APIRequestContext, resource: str, headers: Optional[Dict[str, str]] = None,
                    form: Optional[Dict[str, Any]] = None, data: Any = None) -> APIResponse:
    """Sends a DELETE request and returns the checked response"""
    response = await context.delete(resource, headers=headers, form=form, data=data)
    await check_status_code(response)
    return response


async def do_get(context: APIRequestContext, resource: str, headers: Optional[Dict[str, str]] = None,
                 form: Optional[Dict[str, Any]] = None, data: Any = None) -> APIResponse:
    """Sends a GET request and returns the checked response"""
    response = await context.get(resource, headers=headers, form=form, data=data)
    await check_status_code(response)
    return response


async def do_patch(context: APIRequestContext, resource: str, headers: Optional[Dict[str, str]] = None,
                   form: Optional[Dict[str, Any]] = None, data: Any = None) -> APIResponse:
    """Sends a PATCH request and returns the checked response"""
    response = await context.patch(resource, headers=headers, form=form, data=data)
    await check_status_code(response)
    return response


async def do_post(context: APIRequestContext, resource: str, headers: Optional[Dict[str, str]] = None,
                  form: Optional[Dict[str, Any]] = None, data: Any = None) -> APIResponse:
    """Sends a POST request and returns the checked response"""
    response = await context.post(resource, headers=headers, form=form, data=data)
    await check_status_code(response)
    return response


async def do_put(context: APIRequestContext, resource: str, headers: Optional[Dict[str, str]] = None,
                 form: Optional[Dict[str, Any]] = None, data: Any = None) -> APIResponse:
    """Sends a PUT request and returns the checked response"""
    response = await context.put(resource, headers=headers, form=form, data=data)
    await check_status_code(response)
    return response
