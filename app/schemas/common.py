"""
Shared response envelopes.
"""

from typing import Generic, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


class DataResponse(BaseModel, Generic[T]):
    """`{message, data}` envelope returned by mutating endpoints."""
    message: str
    data: T


class MessageResponse(BaseModel):
    message: str
