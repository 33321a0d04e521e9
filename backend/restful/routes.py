"""
Route registration.

Views are mounted on the app with ``urls``, in the following format::

    urls(app, "/api", [
        {"controller": IndexController()},
        {"url": "/home", "controller": HomeController()},
    ])

``urls`` also installs the 404 handler and the terminal error handler,
so it should be called once all other routes are in place.
"""

from typing import Any, Iterable, Mapping, Union

from fastapi import FastAPI, Request
from starlette.types import ASGIApp, Receive, Scope, Send

from restful.core.exceptions import ErrorHandler, NotFoundError, setup_exception_handlers
from restful.core.logging import get_logger
from restful.schemas.route import Route

logger = get_logger(__name__)


def urls(app: FastAPI, prefix: str, views: Iterable[Union[Route, Mapping[str, Any]]]) -> FastAPI:
    """
    Mount every view's router on the app.

    Args:
        app: The FastAPI app
        prefix: Url prefix shared by all views
        views: Routes, as ``Route`` objects or mappings

    Returns:
        The app

    Raises:
        TypeError: If a view url does not start with ``/``
    """
    prefix = prefix.rstrip("/")

    for view in views:
        if not isinstance(view, Route):
            view = Route.model_validate(view)

        if not view.controller:
            continue

        if view.url and not view.url.startswith("/"):
            raise TypeError(f"Url '{view.url}' must be prefixed with /")

        app.include_router(view.controller.as_view(), prefix=f"{prefix}{view.url or ''}")
        logger.info(
            f"Mounted {type(view.controller).__name__}",
            extra={"prefix": f"{prefix}{view.url or ''}"},
        )

    # 404 handler, runs when no route matched
    app.router.default = _not_found_app(prefix, app.router.default)

    app.state.error_handler = setup_exception_handlers(app, ErrorHandler(app))
    return app


async def not_found_handler(request: Request) -> None:
    """Handler for 404 responses, raises a NotFoundError."""
    raise NotFoundError(f"Could not find page {request.url.path}")


def _not_found_app(prefix: str, fallback: ASGIApp) -> ASGIApp:
    async def app(scope: Scope, receive: Receive, send: Send) -> None:
        path = scope.get("path", "")
        if scope["type"] == "http" and (not prefix or path == prefix or path.startswith(prefix + "/")):
            await not_found_handler(Request(scope, receive))
        await fallback(scope, receive, send)

    return app
