import logging

from fastapi import APIRouter, Request
from fastapi.responses import Response
from opentelemetry import trace
from uvicorn.logging import TRACE_LOG_LEVEL

from accelerator.queries import UpstreamQueryError, is_server_catching_up
from accelerator.utils import new_request_id
from accelerator.utils.traced_requests import traced_request

router = APIRouter()

logger = logging.getLogger("uvicorn.error")

tracer = trace.get_tracer(__name__)


@router.get("/is-synced")
async def is_synced(request: Request):
    """
    Report whether the upstream node has caught up with the network.

    Returns 200 when synced, 503 while the upstream is still catching up and
    502 when its status cannot be retrieved.
    """
    request_id = new_request_id()
    state = request.app.state
    with traced_request(
        tracer,
        operation="is_synced",
        request_id=request_id,
        start_message="[IsSynced] Handling request",
    ) as span:
        logger.log(TRACE_LOG_LEVEL, f"[{request_id}] [IsSynced] Checking if server is synced")
        try:
            catching_up = await is_server_catching_up(
                state.http_client, state.options.server
            )
        except UpstreamQueryError as e:
            logger.error(f"[{request_id}] [IsSynced] Failed to retrieve RPC status: {e}")
            span.set_attribute("is_synced.error", str(e))
            return Response("Failed to retrieve RPC status", status_code=502)

        span.set_attribute("is_synced.catching_up", catching_up)
        logger.debug(f"[{request_id}] [IsSynced] Returning response")
        # Not technically a 503 since it's the upstream that's not ready
        return Response("", status_code=503 if catching_up else 200)
