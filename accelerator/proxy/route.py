import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import Response
from opentelemetry import trace
from uvicorn.logging import TRACE_LOG_LEVEL

from accelerator.height import CacheEntry, HeightCache
from accelerator.metrics import CACHE_HITS, CACHE_MISSES
from accelerator.schema_validation import is_json_rpc_response
from accelerator.utils import new_request_id
from accelerator.utils.traced_requests import traced_request

router = APIRouter()
tracer = trace.get_tracer(__name__)
logger = logging.getLogger("uvicorn.error")

ABCI_QUERY_MARKER = '"method":"abci_query"'

# Hop-by-hop headers that should NOT be forwarded (RFC 2616)
HOP_BY_HOP_HEADERS = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailers",
    "transfer-encoding",
    "upgrade",
}

# The body is re-emitted decoded, so length and encoding are recomputed
STRIPPED_RESPONSE_HEADERS = HOP_BY_HOP_HEADERS | {"content-length", "content-encoding"}


@dataclass
class CacheableQuery:
    key: str
    request_id: Any


def get_target_url(server: str, path: str) -> str:
    return f"{server}/{path.lstrip('/')}"


def prepare_headers(request: Request) -> Dict[str, str]:
    """Copy the inbound headers, dropping ``Host`` and hop-by-hop headers."""
    headers = {}
    for name, value in request.headers.items():
        name_lower = name.lower()
        if name_lower == "host" or name_lower in HOP_BY_HOP_HEADERS:
            continue
        headers[name] = value
    return headers


def merged_query_params(request: Request) -> Dict[str, str]:
    """Query parameters with the last value winning for repeated keys."""
    return dict(request.query_params)


def canonical_params_key(params: Any) -> str:
    return json.dumps(params, sort_keys=True, separators=(",", ":"))


def classify_request(body: bytes, request_id: str) -> Optional[CacheableQuery]:
    """
    Decide whether a request body is an ``abci_query`` that may be cached.

    Returns None for anything that must be forwarded untouched: bodies that
    are not UTF-8 text, bodies without the ``abci_query`` method marker, bodies
    that are not a JSON object, and queries missing ``params`` or ``id``.
    """
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError:
        logger.warning(f"[{request_id}] [Proxy] Body is not text, skipping cache")
        return None

    if ABCI_QUERY_MARKER not in text:
        logger.debug(f"[{request_id}] [Proxy] Not an ABCI query, skipping cache")
        return None

    try:
        query = json.loads(text)
    except ValueError as e:
        logger.warning(f"[{request_id}] [Proxy] Body is not valid JSON, skipping cache: {e}")
        return None

    if not isinstance(query, dict) or "params" not in query or "id" not in query:
        logger.warning(
            f"[{request_id}] [Proxy] Query params or id is undefined, skipping cache"
        )
        return None

    key = canonical_params_key(query["params"])
    logger.log(TRACE_LOG_LEVEL, f"[{request_id}] [Proxy] Params string: {key}")
    return CacheableQuery(key=key, request_id=query["id"])


def cached_response(entry: CacheEntry, request_id: Any) -> Response:
    """Serve a cached entry, answering with the id of the current request."""
    content = json.dumps({**entry, "id": request_id})
    return Response(content=content, status_code=200, media_type="application/json")


def to_client_response(upstream: httpx.Response) -> Response:
    response = Response(content=upstream.content, status_code=upstream.status_code)
    for name, value in upstream.headers.multi_items():
        if name.lower() in STRIPPED_RESPONSE_HEADERS:
            continue
        response.headers.append(name, value)
    return response


async def forward_to_target(
    client: httpx.AsyncClient, server: str, request: Request, body: bytes, span
) -> httpx.Response:
    target_url = get_target_url(server, request.url.path)
    span.set_attribute("proxy.target_url", target_url)
    span.set_attribute("proxy.method", request.method)

    try:
        response = await client.request(
            method=request.method,
            url=target_url,
            params=merged_query_params(request),
            headers=prepare_headers(request),
            content=body,
        )
    except httpx.TimeoutException as e:
        logger.error(f"[Proxy] Proxy timeout for {target_url}: {e}")
        span.set_attribute("proxy.error", "timeout")
        raise HTTPException(status_code=504, detail="Gateway timeout")
    except httpx.ConnectError as e:
        logger.error(f"[Proxy] Failed to connect to target {target_url}: {e}")
        span.set_attribute("proxy.error", "connection_failed")
        raise HTTPException(
            status_code=502, detail="Bad gateway - cannot connect to target"
        )
    except httpx.HTTPError as e:
        logger.error(f"[Proxy] Proxy error for {target_url}: {e}", exc_info=True)
        span.set_attribute("proxy.error", str(e))
        raise HTTPException(status_code=502, detail=f"Bad gateway: {str(e)}")

    span.set_attribute("proxy.status_code", response.status_code)
    return response


async def proxy_request(
    request: Request, cache: HeightCache, client: httpx.AsyncClient, server: str
) -> Response:
    """
    Forward a request upstream, answering cacheable ``abci_query`` calls from
    the height cache when possible.
    """
    request_id = new_request_id()
    body = await request.body()

    with traced_request(
        tracer,
        operation="proxy_request",
        request_id=request_id,
        start_message=f"[Proxy] Handling {request.method} {request.url.path}",
    ) as span:
        query = classify_request(body, request_id)
        if query is None:
            span.set_attribute("proxy.cache", "bypass")
            upstream = await forward_to_target(client, server, request, body, span)
            return to_client_response(upstream)

        entry = cache.get(query.key)
        if entry is not None:
            logger.debug(
                f"[{request_id}] [Proxy] Cache hit, returning cached response with id replaced"
            )
            span.set_attribute("proxy.cache", "hit")
            CACHE_HITS.inc()
            return cached_response(entry, query.request_id)

        logger.debug(f"[{request_id}] [Proxy] Cache miss, fetching from RPC")
        span.set_attribute("proxy.cache", "miss")
        CACHE_MISSES.inc()

        observed_height = cache.current_height
        upstream = await forward_to_target(client, server, request, body, span)

        if not upstream.is_success:
            logger.error(
                f"[{request_id}] [Proxy] Fetch from RPC failed, returning error response: {upstream.status_code}"
            )
            return to_client_response(upstream)

        try:
            result = upstream.json()
        except ValueError as e:
            logger.error(
                f"[{request_id}] [Proxy] Failed to parse response body: {e}, returning response"
            )
            return to_client_response(upstream)

        if not is_json_rpc_response(result):
            logger.error(
                f"[{request_id}] [Proxy] Response body is not a JSON-RPC response, skipping cache"
            )
            return to_client_response(upstream)

        cache.set(query.key, result, observed_height)
        logger.debug(f"[{request_id}] [Proxy] Returning response")
        return to_client_response(upstream)


# Register catch-all route for proxying
@router.api_route(
    "/{path:path}",
    methods=["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"],
)
async def proxy_all(request: Request, path: str):
    """Catch-all route that proxies all requests to the upstream node."""
    state = request.app.state
    return await proxy_request(
        request, state.height_cache, state.http_client, state.options.server
    )
