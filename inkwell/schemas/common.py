"""Shared response envelopes and the camelCase base model."""

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DataT = TypeVar("DataT")


class CamelModel(BaseModel):
    """Base model: camelCase on the wire, snake_case in Python, readable from ORM rows."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ApiResponse(CamelModel, Generic[DataT]):
    """Success envelope: {success, message?, data?}."""

    success: bool = True
    message: str | None = None
    data: DataT | None = None


class ErrorResponse(CamelModel):
    """Error envelope: {success: false, message, code?, errors?}."""

    success: bool = False
    message: str
    code: str | None = None
    errors: dict[str, str] | None = Field(
        default=None,
        description="Field name -> problem, for validation failures.",
    )
    error: str | None = Field(
        default=None,
        description="Exception detail; only populated in development.",
    )
