"""
Auth controller.
Runs a second filter stage (``auth_filters``) ahead of every
RestController wrapper.
"""

from typing import Any, List

from fastapi import Request, Response

from restful.controllers.rest_controller import RestController
from restful.filters.base import run_filters


class AuthController(RestController):
    """RestController guarded by authentication filters."""

    auth_filters: List[Any] = []
    ignore_methods: List[str] = []  # Methods that skip the auth filters

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.auth_filters = list(self.auth_filters)
        self.ignore_methods = list(self.ignore_methods)

    async def list_wrapper(self, request: Request, response: Response) -> Any:
        await self.authorize("list", request, response)
        return await super().list_wrapper(request, response)

    async def retrieve_wrapper(self, request: Request, response: Response) -> Any:
        await self.authorize("retrieve", request, response)
        return await super().retrieve_wrapper(request, response)

    async def create_wrapper(self, request: Request, response: Response) -> Any:
        await self.authorize("create", request, response)
        return await super().create_wrapper(request, response)

    async def update_wrapper(self, request: Request, response: Response) -> Any:
        await self.authorize("update", request, response)
        return await super().update_wrapper(request, response)

    async def destroy_wrapper(self, request: Request, response: Response) -> Any:
        await self.authorize("destroy", request, response)
        return await super().destroy_wrapper(request, response)

    async def authorize(self, method: str, request: Request, response: Response) -> None:
        """
        Run the auth filters for ``method``.

        A disabled method is refused first, so it answers 405 whatever
        the auth filters would have said.
        """
        self.ensure_enabled(method)
        if method in self.ignore_methods:
            return
        await run_filters(self.auth_filters, request, response)
