"""
app/schemas/base.py

Shared response model bases.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Response model serialised with camelCase keys; accepts either form on input.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ErrorResponse(BaseModel):
    """
    Body of every non-2xx response.
    """

    success: bool = False
    error: str
    message: str | None = None
