"""
RestController is the root controller of restful.

It provides a simple way to build a CRUD server in an "MVC-like"
structure. Everything builds on classes and inheritance: a child of
RestController only has to provide a ``model`` for it to support all
the basic CRUD operations.

Each route is bound to a wrapper (``list_wrapper``, ``retrieve_wrapper``,
...) that checks the disable-list, runs the filters, attaches the
per-request db context and finally defers to the bare handler
(``list``, ``retrieve``, ...).
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.params import Depends as DependsParam

from restful.core.exceptions import BadRequestError, MethodNotAllowed, NotFoundError
from restful.db.document_model import DocumentModel
from restful.filters.base import run_filters
from restful.schemas.controller import ControllerConfig

PAGINATION_PARAMS = ("limit", "offset")


@dataclass
class DbContext:
    """Per-request database context, stored on ``request.state.db``."""
    name: str
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def current(self) -> Any:
        """Document loaded for this request, if any."""
        return self.data.get(self.name)


class RestController:
    """Base controller mapping the five CRUD verbs onto a model."""

    model: Optional[DocumentModel] = None
    prefix: str = ""
    use_patch: bool = True  # PATCH instead of PUT on update
    middleware: List[Any] = []
    disable: List[str] = []

    # Methods routed without the primary key. Not valid for `retrieve`,
    # as `list` already serves the pk-less GET.
    ignore_pk_on: List[str] = []

    # Route parameter identifying a single item in retrieve, update and
    # destroy. The default `id` maps to the model's primary key column.
    pk: str = "id"

    # Filters validate every request of the controller before the
    # handler runs (forms, header values, file properties, ...).
    filters: List[Any] = []

    def __init__(self, prefix: str = "", config: Optional[ControllerConfig] = None, pk: Optional[str] = None):
        if config is not None:
            for name in ControllerConfig.model_fields:
                value = getattr(config, name)
                if value is not None:
                    setattr(self, name, value)

        # Instance copies, so configuring one controller never leaks into another
        self.middleware = list(self.middleware)
        self.disable = list(self.disable)
        self.ignore_pk_on = list(self.ignore_pk_on)
        self.filters = list(self.filters)

        self.prefix = (prefix or self.prefix or "").strip("/")
        self.pk = pk or self.pk
        if not self.pk or not self.pk.isidentifier():
            raise ValueError(f"Primary key '{self.pk}' is not a valid path parameter name")

    # ---------- handlers ----------

    async def list(self, request: Request, response: Response) -> Any:
        """
        List items from the model.
        Query parameters other than ``limit`` and ``offset`` filter by equality.

        Route: GET /
        """
        model = self._require_model()
        skip, limit = self.get_pagination(request)
        filters = {
            key: value
            for key, value in request.query_params.items()
            if key not in PAGINATION_PARAMS
        }

        data = await model.find(filters, skip=skip, limit=limit)
        response.status_code = status.HTTP_200_OK if data is not None else status.HTTP_404_NOT_FOUND
        return data

    async def retrieve(self, request: Request, response: Response) -> Any:
        """
        Retrieve the single item loaded by ``retrieve_wrapper``.

        Route: GET /{pk}
        """
        self._require_model()

        context: Optional[DbContext] = getattr(request.state, "db", None)
        if context is None or not context.current:
            raise NotFoundError()

        response.status_code = status.HTTP_200_OK
        return context.current

    async def create(self, request: Request, response: Response) -> Any:
        """
        Create a new resource from the JSON body.

        Route: POST /
        """
        model = self._require_model()
        body = await self.read_body(request)

        data = await model.create(body)
        response.status_code = status.HTTP_201_CREATED
        return data

    async def update(self, request: Request, response: Response) -> Any:
        """
        Update a specific item, located through the primary key.

        Route: PATCH /{pk} | PUT /{pk}
        """
        model = self._require_model()
        query = self.get_pk_query(request)
        body = await self.read_body(request)

        # The primary key is never rewritten
        body.pop(self.pk, None)
        body.pop(self._pk_field(), None)

        data = await model.find_one_and_update(query, body)
        response.status_code = status.HTTP_200_OK if data else status.HTTP_404_NOT_FOUND
        return data

    async def destroy(self, request: Request, response: Response) -> None:
        """
        Remove a resource.

        Route: DELETE /{pk}
        """
        model = self._require_model()
        await model.remove(self.get_pk_query(request))
        response.status_code = status.HTTP_204_NO_CONTENT
        return None

    # ---------- wrappers ----------

    async def list_wrapper(self, request: Request, response: Response) -> Any:
        await self._prepare("list", request, response)
        return await self.list(request, response)

    async def retrieve_wrapper(self, request: Request, response: Response) -> Any:
        await self._prepare("retrieve", request, response)

        # Skip loading when there is nothing to load
        if self._pk_value(request) is None or not self.model:
            return await self.retrieve(request, response)

        request.state.db.data[request.state.db.name] = await self.model.find_one(self.get_pk_query(request))
        return await self.retrieve(request, response)

    async def create_wrapper(self, request: Request, response: Response) -> Any:
        await self._prepare("create", request, response)
        return await self.create(request, response)

    async def update_wrapper(self, request: Request, response: Response) -> Any:
        await self._prepare("update", request, response)

        pk_value = self._pk_value(request)
        if pk_value is None or not self.model:
            return await self.update(request, response)

        data = await self.model.find_one(self.get_pk_query(request))
        if not data:
            raise NotFoundError(f"Cannot find resource {pk_value}")

        request.state.db.data[request.state.db.name] = data
        return await self.update(request, response)

    async def destroy_wrapper(self, request: Request, response: Response) -> Any:
        await self._prepare("destroy", request, response)
        return await self.destroy(request, response)

    # ---------- routing ----------

    def as_view(self) -> APIRouter:
        """
        Convert the controller methods to a router.

        Returns:
            APIRouter with the five CRUD routes
        """
        router = APIRouter(dependencies=self._dependencies())
        url = f"/{self.prefix}" if self.prefix else "/"
        item_url = f"/{self.prefix + '/' if self.prefix else ''}{{{self.pk}}}"

        def modify_url(method: str) -> str:
            return url if method in self.ignore_pk_on else item_url

        name = type(self).__name__
        routes = [
            ("create", url, "POST", self.create_wrapper),
            ("list", url, "GET", self.list_wrapper),
            ("retrieve", item_url, "GET", self.retrieve_wrapper),
            ("update", modify_url("update"), "PATCH" if self.use_patch else "PUT", self.update_wrapper),
            ("destroy", modify_url("destroy"), "DELETE", self.destroy_wrapper),
        ]
        for method, path, http_method, endpoint in routes:
            router.add_api_route(
                path,
                endpoint,
                methods=[http_method],
                name=f"{name}.{method}",
                response_model=None,
            )

        return router

    # ---------- helpers ----------

    def get_pk_query(self, request: Request) -> Dict[str, Any]:
        """
        Build the model query extracting an item through the primary key.

        Raises:
            BadRequestError: If the request carries no primary key
        """
        value = self._pk_value(request)
        if value is None:
            raise BadRequestError(f"Missing primary key '{self.pk}'")
        return {self._pk_field(): value}

    def get_pagination(self, request: Request) -> Tuple[Optional[int], Optional[int]]:
        """
        Read ``offset`` and ``limit`` from the query string.

        Returns:
            (skip, limit), each None when not given
        """
        return (
            _parse_non_negative(request.query_params.get("offset"), "offset"),
            _parse_non_negative(request.query_params.get("limit"), "limit"),
        )

    async def read_body(self, request: Request) -> Dict[str, Any]:
        """Parse the JSON object body, an empty body reads as ``{}``."""
        raw = await request.body()
        if not raw:
            return {}
        try:
            body = await request.json()
        except ValueError:
            raise BadRequestError("Request body is not valid JSON")
        if not isinstance(body, dict):
            raise BadRequestError("Request body must be a JSON object")
        return body

    async def run_filters(self, request: Request, response: Response) -> None:
        await run_filters(self.filters, request, response)

    def ensure_enabled(self, method: str) -> None:
        if method in self.disable:
            raise MethodNotAllowed()

    async def _prepare(self, method: str, request: Request, response: Response) -> None:
        self.ensure_enabled(method)
        await self.run_filters(request, response)
        self._attach_db(request)

    def _attach_db(self, request: Request) -> Request:
        if getattr(request.state, "db", None) is None and self.model:
            request.state.db = DbContext(name=self.model.model_name.lower())
        return request

    def _require_model(self) -> DocumentModel:
        if not self.model:
            raise MethodNotAllowed()
        return self.model

    def _pk_value(self, request: Request) -> Optional[str]:
        value = request.path_params.get(self.pk)
        if value is None:
            value = request.query_params.get(self.pk)
        return value

    def _pk_field(self) -> str:
        if self.pk == "id" and self.model is not None:
            return getattr(self.model, "primary_key", self.pk)
        return self.pk

    def _dependencies(self) -> List[DependsParam]:
        return [m if isinstance(m, DependsParam) else Depends(m) for m in self.middleware]


def _parse_non_negative(value: Optional[str], name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        number = int(value)
    except ValueError:
        raise BadRequestError(f"Query parameter '{name}' must be an integer")
    if number < 0:
        raise BadRequestError(f"Query parameter '{name}' must not be negative")
    return number
