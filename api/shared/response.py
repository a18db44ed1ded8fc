"""Success envelope shared by every feature router."""
from typing import Generic, Literal, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ResponseModel(BaseModel, Generic[T]):
    """Wraps a route's payload; failures use `ErrorResponse` instead."""

    data: Optional[T] = Field(default=None, description="Response payload")
    message: Optional[str] = Field(default=None, examples=["Message sent"])
    status: Literal["ok"] = Field(default="ok", description="Response status")

    @classmethod
    def success(cls, data: Optional[T] = None, message: str = "Success") -> "ResponseModel[T]":
        return cls(data=data, message=message)
