"""
restful: CRUD controllers for FastAPI.
"""

from restful.controllers.auth_controller import AuthController
from restful.controllers.rest_controller import DbContext, RestController
from restful.core.exceptions import (
    BadRequestError,
    ErrorHandler,
    ForbiddenError,
    HttpError,
    MethodNotAllowed,
    NotFoundError,
    UnauthorizedError,
)
from restful.db.document_model import DocumentModel, SQLAlchemyModel
from restful.db.session import setup_database
from restful.filters.base import CallableFilter, Filter, HeaderFilter, run_filters
from restful.main import create_app
from restful.routes import not_found_handler, urls
from restful.schemas.controller import ControllerConfig
from restful.schemas.route import Route

__all__ = [
    "AuthController",
    "BadRequestError",
    "CallableFilter",
    "ControllerConfig",
    "DbContext",
    "DocumentModel",
    "ErrorHandler",
    "Filter",
    "ForbiddenError",
    "HeaderFilter",
    "HttpError",
    "MethodNotAllowed",
    "NotFoundError",
    "RestController",
    "Route",
    "SQLAlchemyModel",
    "UnauthorizedError",
    "create_app",
    "not_found_handler",
    "run_filters",
    "setup_database",
    "urls",
]
