import httpx
from jsonschema import ValidationError

from accelerator.schema_validation import (
    BLOCKCHAIN_SCHEMA,
    describe_validation_error,
    validate_schema,
)
from .errors import UpstreamQueryError


async def get_current_height(client: httpx.AsyncClient, server: str) -> int:
    """
    Fetch the latest block height from ``{server}/blockchain``.

    ``last_height`` is string encoded on the wire so it is parsed into a
    Python int without any precision loss.

    Raises:
        UpstreamQueryError: on transport errors, non-2xx responses, invalid
            JSON or a payload that does not match the expected shape.
    """
    try:
        response = await client.get(f"{server}/blockchain")
        response.raise_for_status()
        data = response.json()
    except httpx.HTTPError as e:
        raise UpstreamQueryError(f"Failed to fetch blockchain: {e}") from e
    except ValueError as e:
        raise UpstreamQueryError(f"Blockchain response is not JSON: {e}") from e

    try:
        validate_schema(BLOCKCHAIN_SCHEMA, data)
    except ValidationError as e:
        raise UpstreamQueryError(
            f"Failed to parse blockchain response: {describe_validation_error(e)}"
        ) from e

    try:
        return int(data["result"]["last_height"])
    except ValueError as e:
        raise UpstreamQueryError(f"Failed to parse blockchain height: {e}") from e
