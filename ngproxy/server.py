"""
FastAPI integration: per-request render registries and the dispatch endpoint.

Provides:
- ``get_render_registry`` - dependency returning the request's RenderRegistry
- POST {prefix}/{callback_id} - runs a bound server function, returns promise JSON
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, FastAPI, HTTPException, Request, status
from fastapi.responses import Response
from pydantic import BaseModel

from .config import DEFAULT_CONFIG, ProxyConfig
from .errors import UnknownCallbackError
from .render.bindings import CallbackTable
from .render.registry import RenderRegistry

logger = logging.getLogger(__name__)

__all__ = ["ProxyCall", "install", "get_render_registry", "create_proxy_router"]


class ProxyCall(BaseModel):
    """Body posted by the client-side transport proxy."""

    data: Optional[str] = None


def _app_config(app: FastAPI) -> ProxyConfig:
    return getattr(app.state, "ngproxy_config", DEFAULT_CONFIG)


def _app_bindings(app: FastAPI) -> Optional[CallbackTable]:
    return getattr(app.state, "ngproxy_bindings", None)


def get_render_registry(request: Request) -> RenderRegistry:
    """Return the registry for this request, creating it on first use."""
    registry = getattr(request.state, "ngproxy_registry", None)
    if registry is None:
        registry = RenderRegistry(_app_config(request.app), _app_bindings(request.app))
        request.state.ngproxy_registry = registry
    return registry


def create_proxy_router(prefix: str = DEFAULT_CONFIG.route_prefix) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=["ngproxy"])

    @router.post(
        "/{callback_id}",
        summary="Dispatch proxied call",
        description="Run the server function bound to callback_id",
    )
    def dispatch_call(
        callback_id: str,
        request: Request,
        call: Optional[ProxyCall] = None,
    ) -> Response:
        bindings = _app_bindings(request.app)
        try:
            if bindings is None:
                raise UnknownCallbackError(callback_id)
            promise = bindings.dispatch(callback_id, call.data if call else None)
        except UnknownCallbackError as exc:
            logger.warning("Unknown callback %s", callback_id)
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=exc.message,
            ) from exc
        return Response(content=promise.render(), media_type="application/json")

    return router


def install(
    app: FastAPI,
    *,
    config: Optional[ProxyConfig] = None,
    bindings: Optional[CallbackTable] = None,
) -> CallbackTable:
    """Attach configuration and a callback table to ``app`` and mount the router."""
    resolved = config or DEFAULT_CONFIG
    table = bindings if bindings is not None else CallbackTable(resolved.max_callbacks)
    app.state.ngproxy_config = resolved
    app.state.ngproxy_bindings = table
    app.include_router(create_proxy_router(resolved.route_prefix))
    return table
