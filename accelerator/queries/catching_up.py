import httpx
from jsonschema import ValidationError

from accelerator.schema_validation import (
    STATUS_SCHEMA,
    describe_validation_error,
    validate_schema,
)
from .errors import UpstreamQueryError


async def is_server_catching_up(client: httpx.AsyncClient, server: str) -> bool:
    """Return ``sync_info.catching_up`` from ``{server}/status``."""
    try:
        response = await client.get(f"{server}/status")
    except httpx.HTTPError as e:
        raise UpstreamQueryError(f"Failed to fetch status: {e}") from e

    if not response.is_success:
        raise UpstreamQueryError(f"Failed to fetch status: {response.status_code}")

    try:
        data = response.json()
    except ValueError as e:
        raise UpstreamQueryError(f"Status response is not JSON: {e}") from e

    try:
        validate_schema(STATUS_SCHEMA, data)
    except ValidationError as e:
        raise UpstreamQueryError(
            f"Failed to parse status response: {describe_validation_error(e)}"
        ) from e

    return data["result"]["sync_info"]["catching_up"]
