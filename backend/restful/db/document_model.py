"""
Document-style model adapter.
Controllers talk to their model through the small ``DocumentModel``
protocol; ``SQLAlchemyModel`` implements it over async SQLAlchemy sessions.
"""

import uuid
from typing import Any, Dict, List, Mapping, Optional, Protocol, Type, runtime_checkable

from sqlalchemy import delete, inspect as sa_inspect, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from restful.core.exceptions import BadRequestError
from restful.core.logging import get_logger
from restful.db.base import Base
from restful.db.session import get_session_maker

logger = get_logger(__name__)

Document = Dict[str, Any]

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@runtime_checkable
class DocumentModel(Protocol):
    """Operations a controller needs from its model."""
    
    model_name: str
    primary_key: str
    
    async def find(
        self,
        filters: Mapping[str, Any],
        skip: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Optional[List[Document]]:
        ...
    
    async def find_one(self, filters: Mapping[str, Any]) -> Optional[Document]:
        ...
    
    async def find_one_and_update(
        self,
        filters: Mapping[str, Any],
        values: Mapping[str, Any],
    ) -> Optional[Document]:
        ...
    
    async def create(self, data: Mapping[str, Any]) -> Document:
        ...
    
    async def remove(self, filters: Mapping[str, Any]) -> int:
        ...


class SQLAlchemyModel:
    """``DocumentModel`` backed by a SQLAlchemy mapped class."""
    
    def __init__(
        self,
        model: Type[Base],
        session_maker: Optional[async_sessionmaker[AsyncSession]] = None,
    ):
        """
        Initialize the adapter.
        
        Args:
            model: SQLAlchemy mapped class
            session_maker: Async sessionmaker, defaults to the global one
        """
        self.model = model
        self.model_name = model.__name__
        self._session_maker = session_maker
        
        mapper = sa_inspect(model)
        self._columns = {attr.key: attr.columns[0] for attr in mapper.column_attrs}
        self.primary_key = mapper.get_property_by_column(mapper.primary_key[0]).key
    
    @property
    def session_maker(self) -> async_sessionmaker[AsyncSession]:
        return self._session_maker or get_session_maker()
    
    async def find(
        self,
        filters: Mapping[str, Any],
        skip: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[Document]:
        """
        List documents matching every filter.
        
        Args:
            filters: Field/value equality criteria, unknown fields are ignored
            skip: Number of documents to skip
            limit: Maximum number of documents to return
            
        Returns:
            List of documents
        """
        query = self._where(select(self.model), filters)
        query = query.order_by(getattr(self.model, self.primary_key))
        
        if skip:
            query = query.offset(skip)
        if limit is not None:
            query = query.limit(limit)
        
        async with self.session_maker() as session:
            result = await session.execute(query)
            return [self._to_document(row) for row in result.scalars().all()]
    
    async def find_one(self, filters: Mapping[str, Any]) -> Optional[Document]:
        """Get the first document matching every filter, or None."""
        async with self.session_maker() as session:
            instance = await self._first(session, filters)
            return self._to_document(instance) if instance is not None else None
    
    async def find_one_and_update(
        self,
        filters: Mapping[str, Any],
        values: Mapping[str, Any],
    ) -> Optional[Document]:
        """
        Update the first matching document.
        
        Args:
            filters: Field/value equality criteria
            values: Fields to set, unknown fields and the primary key are ignored
            
        Returns:
            Updated document or None if nothing matched
        """
        async with self.session_maker() as session:
            instance = await self._first(session, filters)
            if instance is None:
                return None
            
            for key, value in self._known(values).items():
                if key != self.primary_key:
                    setattr(instance, key, value)
            
            await session.commit()
            await session.refresh(instance)
            return self._to_document(instance)
    
    async def create(self, data: Mapping[str, Any]) -> Document:
        """Insert a new document and return it as stored."""
        async with self.session_maker() as session:
            instance = self.model(**self._known(data))
            session.add(instance)
            await session.commit()
            await session.refresh(instance)
            logger.debug(f"Created {self.model_name}", extra={"pk": getattr(instance, self.primary_key)})
            return self._to_document(instance)
    
    async def remove(self, filters: Mapping[str, Any]) -> int:
        """
        Delete every matching document.
        Unknown filter fields raise ValueError instead of matching every row.
        
        Returns:
            Number of deleted documents
        """
        async with self.session_maker() as session:
            result = await session.execute(self._where(delete(self.model), filters, strict=True))
            await session.commit()
            return result.rowcount
    
    async def _first(self, session: AsyncSession, filters: Mapping[str, Any]) -> Optional[Base]:
        query = self._where(select(self.model), filters, strict=True).limit(1)
        result = await session.execute(query)
        return result.scalars().first()
    
    def _where(self, query, filters: Mapping[str, Any], strict: bool = False):
        if strict:
            unknown = [key for key in filters if key not in self._columns]
            if unknown:
                raise ValueError(f"Unknown field '{unknown[0]}' on {self.model_name}")
        for key, value in self._known(filters).items():
            query = query.where(getattr(self.model, key) == self._coerce(key, value))
        return query
    
    def _known(self, data: Mapping[str, Any]) -> Document:
        return {key: value for key, value in data.items() if key in self._columns}
    
    def _coerce(self, key: str, value: Any) -> Any:
        """Convert string values (path and query parameters) to the column type."""
        if not isinstance(value, str):
            return value
        
        try:
            python_type = self._columns[key].type.python_type
        except NotImplementedError:
            return value
        
        try:
            if python_type is bool:
                lowered = value.lower()
                if lowered in _TRUE_VALUES:
                    return True
                if lowered in _FALSE_VALUES:
                    return False
                raise ValueError(value)
            if python_type in (int, float):
                return python_type(value)
            if python_type is uuid.UUID:
                return uuid.UUID(value)
        except ValueError:
            raise BadRequestError(f"Invalid value for {key}: {value}")
        return value
    
    def _to_document(self, instance: Base) -> Document:
        return {key: getattr(instance, key) for key in self._columns}
