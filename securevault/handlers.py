"""
HTTP API for the vault, served with aiohttp.

Routes:
    GET    /api/secrets        list secrets (with values)
    POST   /api/secrets        create a secret
    PUT    /api/secrets/{id}   partially update a secret
    DELETE /api/secrets/{id}   delete a secret
    GET    /api/health         liveness and storage mode

Browser origins outside the allow-list receive no CORS headers; the request
itself is still served. The localhost bind is the real boundary.
"""
import logging
from typing import Any, Iterable, Optional

import orjson
from aiohttp import web

from .vault import ErrorCategory, SecretService, ServiceResult, VaultConfig

logger = logging.getLogger("securevault.api")

SERVICE_KEY = web.AppKey("securevault.service", SecretService)

_STATUS = {
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.CONFLICT: 409,
    ErrorCategory.PERSISTENCE: 500,
}

_CORS_METHODS = "GET, POST, PUT, DELETE, OPTIONS"
_CORS_HEADERS = "Content-Type"


def _dumps(obj: Any) -> str:
    return orjson.dumps(obj).decode("utf-8")


def _json(data: Any, status: int = 200) -> web.Response:
    return web.json_response(data, status=status, dumps=_dumps)


def _error(result: ServiceResult) -> web.Response:
    return _json({"error": result.message}, status=_STATUS[result.error])


async def _payload(request: web.Request) -> Any:
    """Decode the JSON body. Raises ValueError on malformed input."""
    return await request.json(loads=orjson.loads)


async def list_secrets(request: web.Request) -> web.Response:
    result = request.app[SERVICE_KEY].get_all()
    if not result.ok:
        return _error(result)
    return _json([secret.to_record() for secret in result.data])


async def create_secret(request: web.Request) -> web.Response:
    try:
        payload = await _payload(request)
    except ValueError:
        return _json({"error": "Invalid JSON body"}, status=400)
    result = request.app[SERVICE_KEY].create(payload)
    if not result.ok:
        return _error(result)
    return _json(result.data.to_record(), status=201)


async def update_secret(request: web.Request) -> web.Response:
    try:
        payload = await _payload(request)
    except ValueError:
        return _json({"error": "Invalid JSON body"}, status=400)
    result = request.app[SERVICE_KEY].update(
        request.match_info["secret_id"], payload,
    )
    if not result.ok:
        return _error(result)
    return _json(result.data.to_record())


async def delete_secret(request: web.Request) -> web.Response:
    result = request.app[SERVICE_KEY].delete(request.match_info["secret_id"])
    if not result.ok:
        return _error(result)
    return web.Response(status=204)


async def health(request: web.Request) -> web.Response:
    return _json({
        "status": "ok",
        "service": "SecureVault Backend",
        "storage": request.app[SERVICE_KEY].storage_mode,
    })


def cors_middleware(allowed_origins: Iterable[str]):
    """Add CORS headers for allowed origins only; never reject on origin."""
    allowed = frozenset(allowed_origins)

    @web.middleware
    async def middleware(request: web.Request, handler) -> web.StreamResponse:
        origin = request.headers.get("Origin")
        permitted = origin is not None and origin in allowed
        if permitted and request.method == "OPTIONS":
            response = web.Response(status=204)
            response.headers["Access-Control-Allow-Methods"] = _CORS_METHODS
            response.headers["Access-Control-Allow-Headers"] = _CORS_HEADERS
        else:
            response = await handler(request)
        if permitted:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
        elif origin is not None:
            logger.debug("No CORS headers for origin %s", origin)
        return response

    return middleware


def create_app(
    service: SecretService, config: Optional[VaultConfig] = None,
) -> web.Application:
    """Build the aiohttp application around ``service``."""
    config = config or VaultConfig()
    app = web.Application(middlewares=[cors_middleware(config.allowed_origins)])
    app[SERVICE_KEY] = service
    app.router.add_get("/api/secrets", list_secrets)
    app.router.add_post("/api/secrets", create_secret)
    app.router.add_put("/api/secrets/{secret_id}", update_secret)
    app.router.add_delete("/api/secrets/{secret_id}", delete_secret)
    app.router.add_get("/api/health", health)
    return app
