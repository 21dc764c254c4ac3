"""
HTTP binding for the lookup service.

Routes:
    POST /api/domain-query   body {"type", "objectType", "query"}
    GET  /api/price          ?domain=&sortBy=
    GET  /api/rdap-domains   ?refresh=true
    GET  /health

The credential is the ``password`` query parameter; the caller key comes
from the proxy headers (see auth.identify_caller).
"""

import contextlib
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Optional

from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from . import __version__
from .auth import authenticate, identify_caller
from .config import EngineConfig
from .enums import ErrorKind
from .exceptions import QuotaExceededError, ValidationError
from .models import AuthDecision, CallerIdentity, QuotaStatus
from .service import LookupService

COMPONENT = "server"

SUFFIX_LIST_CACHE_CONTROL = "public, max-age=3600"


def _iso(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, timezone.utc).isoformat()


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _caller(request: Request) -> CallerIdentity:
    return identify_caller(request.headers, request.query_params.get("password"))


def _service(request: Request) -> LookupService:
    return request.app.state.service


def _quota_fields(quota: QuotaStatus, auth: AuthDecision) -> dict[str, Any]:
    return {
        "requestCount": quota.count,
        "resetTime": int(quota.reset_at * 1000),  # Epoch milliseconds
        "isAuth": auth.authenticated,
        "authMode": auth.mode.value if auth.authenticated else None,
    }


def _rate_limit_headers(quota: QuotaStatus) -> dict[str, str]:
    headers = {"X-RateLimit-Reset": _iso(quota.reset_at)}
    if quota.remaining is not None:
        headers["X-RateLimit-Remaining"] = str(quota.remaining)
    return headers


def _quota_exceeded_response(error: QuotaExceededError) -> JSONResponse:
    quota: QuotaStatus = error.quota
    return JSONResponse(
        {
            "success": False,
            "error": error.message,
            "remaining": quota.remaining,
            "resetTime": _iso(quota.reset_at),
        },
        status_code=429,
        headers=_rate_limit_headers(quota),
    )


def _validation_error_response(error: ValidationError) -> JSONResponse:
    return JSONResponse(
        {"success": False, "error": error.message, "code": error.code},
        status_code=400,
    )


async def domain_query(request: Request) -> JSONResponse:
    """Resolve one identifier over RDAP or WHOIS."""
    service = _service(request)

    try:
        body = await request.json()
    except ValueError:
        # JSONDecodeError and UnicodeDecodeError
        return JSONResponse({"success": False, "error": "Request body must be JSON"}, status_code=400)
    if not isinstance(body, dict):
        return JSONResponse({"success": False, "error": "Request body must be an object"}, status_code=400)

    result = await service.resolve(
        body.get("type"), body.get("objectType"), body.get("query"), _caller(request)
    )
    fields = _quota_fields(result.quota, result.auth)

    if result.success:
        return JSONResponse(
            {
                "success": True,
                "data": result.record.to_dict(),
                "raw": result.raw,
                "type": result.source.value,
                "fallback": result.fell_back,
                "note": result.note,
                **fields,
                "timestamp": _now_iso(),
            }
        )

    error = result.error
    payload = {
        "success": False,
        "error": error.message,
        "kind": error.kind.value,
        "errorCode": error.status_code,
        "type": error.source.value if error.source else None,
        "isDomainNotSupported": error.domain_not_supported,
        "detail": error.detail,
        "note": result.note,
        **fields,
    }
    if error.kind is ErrorKind.QUOTA_EXCEEDED:
        return JSONResponse(payload, status_code=429, headers=_rate_limit_headers(result.quota))
    return JSONResponse(payload, status_code=400)


async def price(request: Request) -> JSONResponse:
    """Cheapest registrar offers for a domain's suffix."""
    service = _service(request)
    caller = _caller(request)

    try:
        result = service.price_lookup(
            request.query_params.get("domain"),
            request.query_params.get("sortBy") or "registration",
            caller,
        )
    except ValidationError as e:
        return _validation_error_response(e)
    except QuotaExceededError as e:
        return _quota_exceeded_response(e)

    auth = authenticate(caller.credential, service.config.auth)
    return JSONResponse(
        {
            "success": True,
            "data": result.to_dict(),
            **_quota_fields(result.quota, auth),
            "timestamp": _now_iso(),
        }
    )


async def rdap_domains(request: Request) -> JSONResponse:
    """Top-level domains the engine can query."""
    service = _service(request)
    refresh = request.query_params.get("refresh", "").lower() == "true"

    try:
        result = await service.list_supported_suffixes(_caller(request), refresh=refresh)
    except QuotaExceededError as e:
        return _quota_exceeded_response(e)

    headers = {"Cache-Control": SUFFIX_LIST_CACHE_CONTROL, **_rate_limit_headers(result.quota)}
    return JSONResponse(
        {
            "success": True,
            "data": {
                "domains": [entry.to_dict() for entry in result.entries],
                "total": len(result.entries),
                "last_updated": _iso(result.fetched_at),
                "source": result.source,
                "cached": result.from_cache,
                "fallback": result.is_fallback,
            },
            "timestamp": _now_iso(),
        },
        headers=headers,
    )


async def health_check(request: Request) -> JSONResponse:
    """Health check endpoint."""
    service = _service(request)
    return JSONResponse(
        {
            "status": "healthy",
            "version": __version__,
            "quota_windows": service.store.window_count(),
        }
    )


def create_app(
    config: Optional[EngineConfig] = None,
    service: Optional[LookupService] = None,
) -> Starlette:
    """Create and configure the Starlette application."""
    cfg = service.config if service is not None else (config or EngineConfig.from_env())
    lookup_service = service or LookupService(cfg)

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        lookup_service.start()
        lookup_service.logger.info(COMPONENT, "Lookup service started")
        try:
            yield
        finally:
            await lookup_service.close()
            lookup_service.logger.info(COMPONENT, "Lookup service stopped")

    routes = [
        Route("/api/domain-query", domain_query, methods=["POST"]),
        Route("/api/price", price, methods=["GET"]),
        Route("/api/rdap-domains", rdap_domains, methods=["GET"]),
        Route("/health", health_check),
    ]

    app = Starlette(debug=False, routes=routes, lifespan=lifespan)
    app.state.service = lookup_service

    allowed_origins = [origin.strip() for origin in cfg.server.cors_allowed_origins.split(",")]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=["X-RateLimit-Remaining", "X-RateLimit-Reset"],
    )

    return app


def main(config: Optional[EngineConfig] = None) -> None:
    """Run the HTTP server with uvicorn."""
    import uvicorn

    cfg = config or EngineConfig.from_env()
    cfg.validate()

    app = create_app(cfg)
    uvicorn.run(
        app,
        host=cfg.server.host,
        port=cfg.server.port,
        log_level=cfg.logging.level.replace("warn", "warning"),
    )


if __name__ == "__main__":
    main()
