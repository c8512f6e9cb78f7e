"""Pydantic schemas for composition requests and error responses."""

from pydantic import BaseModel


class ConvertRequestSchema(BaseModel):
    image: str | None = None
    mode: str | None = None


class CompositionErrorSchema(BaseModel):
    error: str
