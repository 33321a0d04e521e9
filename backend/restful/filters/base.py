"""
Request filters.
A filter validates a request before a controller method runs; it
rejects the request by raising, usually one of the ``HttpError`` types.
"""

import asyncio
import inspect
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Iterable, Optional, Type, Union

from fastapi import Request, Response

from restful.core.exceptions import ForbiddenError, HttpError, UnauthorizedError


class Filter(ABC):
    """Base class for all request filters."""
    
    @abstractmethod
    async def can_access(self, request: Request, response: Response) -> Any:
        """
        Validate the request.
        
        Args:
            request: Incoming request
            response: Response the controller will answer with
            
        Raises:
            Exception: Any error rejects the request
        """


Predicate = Callable[[Request, Response], Union[bool, Awaitable[bool]]]


class CallableFilter(Filter):
    """Filter built from a plain (sync or async) predicate."""
    
    def __init__(
        self,
        predicate: Predicate,
        error: Type[HttpError] = ForbiddenError,
        message: Optional[str] = None,
    ):
        self.predicate = predicate
        self.error = error
        self.message = message
    
    async def can_access(self, request: Request, response: Response) -> bool:
        result = self.predicate(request, response)
        if inspect.isawaitable(result):
            result = await result
        if not result:
            raise self.error(self.message)
        return True


class HeaderFilter(Filter):
    """Requires a request header, optionally with an exact value."""
    
    def __init__(self, header: str, value: Optional[str] = None):
        self.header = header
        self.value = value
    
    async def can_access(self, request: Request, response: Response) -> bool:
        received = request.headers.get(self.header)
        if received is None:
            raise UnauthorizedError(f"Missing header {self.header}")
        if self.value is not None and received != self.value:
            raise UnauthorizedError(f"Invalid header {self.header}")
        return True


async def _check(f: Any, request: Request, response: Response) -> Any:
    result = f.can_access(request, response)
    if inspect.isawaitable(result):
        result = await result
    return result


async def run_filters(filters: Iterable[Any], request: Request, response: Response) -> list:
    """
    Run every filter concurrently.
    Entries that are ``None`` or have no ``can_access`` are skipped.
    The first rejection is raised as-is.
    """
    checks = [
        _check(f, request, response)
        for f in filters
        if f is not None and hasattr(f, "can_access")
    ]
    if not checks:
        return []
    return list(await asyncio.gather(*checks))
