"""Structured LLM output validation against Pydantic schemas."""

from devmatch.schemas.parser import StructuredOutputError, StructuredOutputParser

__all__ = [
    "StructuredOutputError",
    "StructuredOutputParser",
]
