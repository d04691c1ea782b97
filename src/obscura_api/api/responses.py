"""Response classification for Obscura API calls.

Each HTTP response ends up as exactly one of:

- a decoded result of the expected type,
- `ObscuraApiError` for a well-formed error envelope,
- `ObscuraProtocolError` when the response is not the JSON API envelope
  (wrong content type, or an error body that does not parse),
- `ObscuraRequestError` when a success body does not decode.
"""

from __future__ import annotations

import functools
import logging
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from obscura_api.api.exceptions import (
    ObscuraApiError,
    ObscuraProtocolError,
    ObscuraRequestError,
)
from obscura_api.api.models import ApiErrorBody

JSON_CONTENT_TYPE = "application/json"

logger = logging.getLogger(__name__)


@functools.cache
def _adapter_for(output_type: Any) -> TypeAdapter[Any]:
    return TypeAdapter(output_type)


def _type_name(output_type: Any) -> str:
    return getattr(output_type, "__name__", None) or repr(output_type)


def is_json_response(response: httpx.Response) -> bool:
    """Check whether the response declares exactly `application/json`."""
    return response.headers.get("content-type") == JSON_CONTENT_TYPE


async def _read_text(response: httpx.Response) -> str:
    await response.aread()
    return response.text


async def parse_response(response: httpx.Response, output_type: Any) -> Any:
    """Classify a response and decode its body.

    Args:
        response: HTTP response from the API
        output_type: Expected result type, or None when no content is expected

    Returns:
        The decoded result (None for no-content commands)

    Raises:
        ObscuraProtocolError: Response is not the JSON API envelope
        ObscuraApiError: API returned a structured error
        ObscuraRequestError: Success body could not be decoded
    """
    status_code = response.status_code

    if not is_json_response(response):
        try:
            raw = await _read_text(response)
        except httpx.HTTPError as error:
            logger.error("Unreadable non-JSON response body (status %s)", status_code)
            raise ObscuraProtocolError.unreadable_body(status_code) from error
        logger.error(
            "Non-JSON response (status %s, content-type %r)",
            status_code,
            response.headers.get("content-type"),
        )
        raise ObscuraProtocolError.non_json(status_code, raw)

    if not response.is_success:
        try:
            raw = await _read_text(response)
        except httpx.HTTPError as error:
            logger.error("Unreadable error response body (status %s)", status_code)
            raise ObscuraProtocolError.unreadable_body(status_code) from error
        try:
            body = ApiErrorBody.model_validate_json(raw)
        except ValidationError as error:
            logger.error("Malformed error envelope (status %s)", status_code)
            raise ObscuraProtocolError.malformed_error_body(status_code, raw) from error
        logger.debug("API error response: %s (%s)", status_code, body.error.raw)
        raise ObscuraApiError(status_code, body)

    # No-content results never look at the body; some success responses have none.
    if output_type is None:
        logger.debug("Successful API response: %s (No Content expected)", status_code)
        return None

    try:
        await response.aread()
        result = _adapter_for(output_type).validate_json(response.content)
    except (httpx.HTTPError, ValidationError) as error:
        # Validation errors echo the input, which may hold a token
        type_name = _type_name(output_type)
        logger.error(
            "Failed to decode successful API response (status %s, expected %s)",
            status_code,
            type_name,
        )
        raise ObscuraRequestError.create_parse_error(status_code, type_name) from error

    logger.debug("Successful API response: %s", status_code)
    return result
