"""
Route schema used by ``restful.routes.urls``.
"""

from pydantic import BaseModel, ConfigDict
from typing import Any, Optional


class Route(BaseModel):
    """A controller mounted under an optional url."""
    model_config = ConfigDict(arbitrary_types_allowed=True)
    
    url: Optional[str] = None
    controller: Optional[Any] = None
