"""
Controller configuration schemas.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Any, List, Optional

CRUD_METHODS = ("list", "retrieve", "create", "update", "destroy")


class ControllerConfig(BaseModel):
    """
    Explicit configuration for a ``RestController``.
    Fields left as None keep the controller's class-level defaults.
    """
    prefix: Optional[str] = Field(None, description="Url prefix of the controller")
    pk: Optional[str] = Field(None, min_length=1, description="Primary key route parameter")
    use_patch: Optional[bool] = Field(None, description="Use PATCH instead of PUT on update")
    disable: Optional[List[str]] = Field(None, description="Methods answered with 405")
    ignore_pk_on: Optional[List[str]] = Field(None, description="Methods routed without the pk segment")
    middleware: Optional[List[Any]] = Field(None, description="FastAPI dependencies run on every route")
    filters: Optional[List[Any]] = Field(None, description="Filters run before every method")
    
    @field_validator("disable", "ignore_pk_on")
    @classmethod
    def validate_methods(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is None:
            return value
        unknown = [method for method in value if method not in CRUD_METHODS]
        if unknown:
            raise ValueError(f"Unknown controller methods: {', '.join(unknown)}")
        return value
    
    @field_validator("pk")
    @classmethod
    def validate_pk(cls, value: Optional[str]) -> Optional[str]:
        # the pk becomes a route path parameter
        if value is not None and not value.isidentifier():
            raise ValueError(f"Primary key '{value}' is not a valid path parameter name")
        return value
    
    @field_validator("ignore_pk_on")
    @classmethod
    def validate_ignore_pk_on(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        # list already serves the pk-less GET route
        if value and "retrieve" in value:
            raise ValueError("retrieve always requires a primary key")
        return value
