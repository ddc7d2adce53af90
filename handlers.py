"""HTTP handlers for the proxy: cached JSON passthrough and image streaming."""

from typing import AsyncIterator

import httpx
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse
from starlette.background import BackgroundTask

from config import CACHE_KEY_INCLUDE_AUTH, logger
from request_manager import RequestManager
from tmdb_client import TMDbClient, UpstreamError
from utils import build_cache_key, validate_image_path

router = APIRouter()

# Upstream image headers worth passing back to the browser
IMAGE_PASSTHROUGH_HEADERS = ("content-type", "cache-control", "etag", "last-modified")


def get_manager(request: Request) -> RequestManager:
    return request.app.state.manager


def get_tmdb(request: Request) -> TMDbClient:
    return request.app.state.tmdb


def _request_path(request: Request) -> str:
    # Forward the path exactly as received so encoded characters such as %3F survive
    raw_path = request.scope.get("raw_path")
    if raw_path:
        path = raw_path.split(b"?", 1)[0].decode("latin-1")
    else:
        path = request.url.path
    if request.url.query:
        path = f"{path}?{request.url.query}"
    return path


async def pipe_and_close(upstream: httpx.Response) -> AsyncIterator[bytes]:
    """Yield the upstream body, closing the response even if the read fails."""
    try:
        async for chunk in upstream.aiter_bytes():
            yield chunk
    finally:
        await upstream.aclose()


@router.get("/health")
async def health_check(request: Request):
    """Health check endpoint."""
    manager = get_manager(request)
    return {
        "status": "ok",
        "cache_entries": len(manager.cache),
        "in_flight": len(manager.fetcher),
    }


@router.options("/{full_path:path}")
async def preflight(full_path: str):
    """Answer any OPTIONS request with an empty 200."""
    return Response(status_code=200)


@router.get("/t/p/{size}/{file_name}")
async def stream_image(size: str, file_name: str, request: Request):
    """Stream an image from the TMDb CDN without caching it."""
    image_path = validate_image_path(size, file_name)
    if not image_path:
        return JSONResponse(status_code=400, content={"error": "Bad Request", "message": "Invalid image path"})

    tmdb = get_tmdb(request)
    try:
        upstream = await tmdb.open_image(image_path)
    except UpstreamError as e:
        return JSONResponse(status_code=502, content={"error": "Bad Gateway", "message": e.body})

    if not upstream.is_success:
        try:
            body = await upstream.aread()
        except httpx.HTTPError as e:
            logger.error(f"TMDb image read failed for {image_path}: {e}")
            return JSONResponse(status_code=502, content={"error": "Bad Gateway", "message": str(e)})
        finally:
            await upstream.aclose()
        logger.warning(f"TMDb image error: {upstream.status_code} {image_path}")
        return Response(
            content=body,
            status_code=upstream.status_code,
            media_type=upstream.headers.get("content-type"),
        )

    headers = {
        name: upstream.headers[name]
        for name in IMAGE_PASSTHROUGH_HEADERS
        if name in upstream.headers and name != "content-type"
    }
    return StreamingResponse(
        pipe_and_close(upstream),
        status_code=upstream.status_code,
        media_type=upstream.headers.get("content-type", "application/octet-stream"),
        headers=headers,
        background=BackgroundTask(upstream.aclose),
    )


@router.api_route("/{full_path:path}", methods=["GET", "POST"])
async def proxy_request(full_path: str, request: Request):
    """Forward a request to TMDb as a GET, serving repeated paths from the cache."""
    manager = get_manager(request)
    tmdb = get_tmdb(request)

    path = _request_path(request)
    auth_header = request.headers.get("authorization")
    include_auth = getattr(request.app.state, "include_auth", CACHE_KEY_INCLUDE_AUTH)
    cache_key = build_cache_key(path, auth_header, include_auth=include_auth)

    if cache_key in manager.cache:
        logger.info(f"Cache hit: {path}")

    async def fetch_upstream():
        logger.info(f"Cache miss - Fetching: {path}")
        return await tmdb.fetch_json(path, auth_header)

    try:
        data = await manager.fetch(cache_key, fetch_upstream)
    except UpstreamError as e:
        if e.status_code is None:
            return JSONResponse(status_code=502, content={"error": "Bad Gateway", "message": e.body})
        # Pass TMDb's status and body through untouched
        return Response(content=e.body, status_code=e.status_code)
    except Exception as e:
        logger.error(f"Proxy Error: {e}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal Server Error", "message": str(e)},
        )

    return JSONResponse(content=data)
