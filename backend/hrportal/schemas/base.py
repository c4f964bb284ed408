from __future__ import annotations

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict


T = TypeVar("T")


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class ApiResponse(BaseModel, Generic[T]):
    """Uniform ``{success, message, data}`` body returned by every endpoint."""

    success: bool = True
    message: str = "OK"
    data: Optional[T] = None
