"""
Greeting model and the controller serving it under /greetings.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String

from restful import AuthController, HeaderFilter, SQLAlchemyModel
from restful.db.base import Base


class Greeting(Base):
    """A message said to someone."""
    
    __tablename__ = "greetings"
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    message = Column(String(255), nullable=False)
    recipient = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)


class HelloWorldController(AuthController):
    """Greetings are public to read, writes need the X-Api-Key header."""
    
    model = SQLAlchemyModel(Greeting)
    prefix = "greetings"
    auth_filters = [HeaderFilter("X-Api-Key", "hello")]
    ignore_methods = ["list", "retrieve"]
