"""
HTTP surface — aiohttp application factory.

Thin layer over RegistrationService: each handler pulls identifiers from
the URL, calls one service method and renders JSON or HTML. Service
errors are turned into JSON error responses by a middleware, and a CORS
middleware lets the public registration form call the API from another
origin.
"""

from __future__ import annotations

from typing import List
from urllib.parse import quote

from aiohttp import web

from capacity import notifier
from capacity.errors import CapacityError
from capacity.models import ServerSettings
from capacity.service import RegistrationService
from capacity.views import render_admin, render_status

SERVICE_KEY = web.AppKey("service", RegistrationService)

_CORS_METHODS = "GET, POST, OPTIONS"
_CORS_HEADERS = "Content-Type"


# ── Middlewares ───────────────────────────────────────────


@web.middleware
async def error_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Render CapacityError subclasses as ``{"error": ...}`` responses."""
    try:
        return await handler(request)
    except CapacityError as exc:
        if exc.status >= 500:
            notifier.print_error(f"{request.method} {request.path}", str(exc))
        message = exc.public_message or str(exc)
        return web.json_response({"error": message}, status=exc.status)


def cors_middleware(origins: List[str]):
    """
    Build a middleware answering preflights and tagging responses
    with Access-Control-Allow-Origin for the allowed origins.
    """
    allow_any = "*" in origins
    allowed = set(origins)

    def _apply(response: web.StreamResponse, origin: str) -> None:
        if allow_any:
            response.headers["Access-Control-Allow-Origin"] = "*"
        else:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"

    @web.middleware
    async def middleware(request: web.Request, handler) -> web.StreamResponse:
        origin = request.headers.get("Origin")
        permitted = origin is not None and (allow_any or origin in allowed)

        if request.method == "OPTIONS" and origin is not None:
            response = web.Response(status=204)
            if permitted:
                _apply(response, origin)
                response.headers["Access-Control-Allow-Methods"] = _CORS_METHODS
                response.headers["Access-Control-Allow-Headers"] = _CORS_HEADERS
            return response

        response = await handler(request)
        if permitted:
            _apply(response, origin)
        return response

    return middleware


# ── Public routes ─────────────────────────────────────────


async def index(request: web.Request) -> web.Response:
    service = request.app[SERVICE_KEY]
    return web.json_response({
        "status": "running",
        "message": "Camp capacity tracker is active",
        "programs": len(service.catalog),
    })


async def health(request: web.Request) -> web.Response:
    return web.json_response({"status": "healthy"})


async def check_limit(request: web.Request) -> web.Response:
    service = request.app[SERVICE_KEY]
    result = await service.check_limit(request.match_info["program_id"])
    return web.json_response(result.to_dict())


async def register(request: web.Request) -> web.Response:
    service = request.app[SERVICE_KEY]
    count = await service.register(request.match_info["program_id"])
    return web.json_response({"success": True, "newCount": count})


async def status(request: web.Request) -> web.Response:
    service = request.app[SERVICE_KEY]
    rows = await service.status_snapshot()
    return web.Response(text=render_status(rows), content_type="text/html")


async def status_json(request: web.Request) -> web.Response:
    service = request.app[SERVICE_KEY]
    rows = await service.status_snapshot()
    return web.json_response([row.to_dict() for row in rows])


# ── Admin routes ──────────────────────────────────────────


def _admin_redirect(key: str) -> web.HTTPFound:
    return web.HTTPFound(f"/admin?key={quote(key, safe='')}")


async def admin(request: web.Request) -> web.Response:
    service = request.app[SERVICE_KEY]
    key = request.query.get("key")
    service.authorize(key)
    rows = await service.status_snapshot()
    return web.Response(text=render_admin(rows, key), content_type="text/html")


async def admin_add(request: web.Request) -> web.Response:
    service = request.app[SERVICE_KEY]
    key = request.query.get("key")
    await service.admin_adjust(request.match_info["program_id"], key, delta=1)
    raise _admin_redirect(key)


async def admin_cancel(request: web.Request) -> web.Response:
    service = request.app[SERVICE_KEY]
    key = request.query.get("key")
    await service.admin_adjust(request.match_info["program_id"], key, delta=-1)
    raise _admin_redirect(key)


async def admin_set(request: web.Request) -> web.Response:
    service = request.app[SERVICE_KEY]
    key = request.query.get("key")
    form = await request.post()
    raw = form.get("newCount", "")
    await service.admin_adjust(request.match_info["program_id"], key, exact=raw)
    raise _admin_redirect(key)


def create_app(service: RegistrationService, settings: ServerSettings) -> web.Application:
    """Build the aiohttp application around a ready service."""
    app = web.Application(middlewares=[
        cors_middleware(settings.cors_origins),
        error_middleware,
    ])
    app[SERVICE_KEY] = service

    app.router.add_get("/", index)
    app.router.add_get("/health", health)
    app.router.add_get("/check-limit/{program_id}", check_limit)
    app.router.add_post("/register/{program_id}", register)
    app.router.add_get("/status", status)
    app.router.add_get("/status.json", status_json)
    app.router.add_get("/admin", admin)
    app.router.add_post("/admin/add/{program_id}", admin_add)
    app.router.add_post("/admin/cancel/{program_id}", admin_cancel)
    app.router.add_post("/admin/set/{program_id}", admin_set)
    return app
