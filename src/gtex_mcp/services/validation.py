"""
Input validation errors and list-size advisories.
"""

import logging
from typing import Optional, Sequence

from pydantic import BaseModel, ValidationError

from gtex_mcp.schemas import ToolResult

logger = logging.getLogger(__name__)


class ToolValidationError(ValueError):
    """Caller input violates a required-field or shape constraint."""


class UnknownToolError(ValueError):
    """Requested tool name is not registered."""

    def __init__(self, name: str):
        super().__init__(f"Unknown tool: {name}")
        self.name = name


def _field_shape(model: type[BaseModel], param: str) -> Optional[str]:
    """Description of a parameter's expected shape, looked up by alias or name."""
    for field_name, field in model.model_fields.items():
        if param in (field.alias, field_name):
            return field.description
    return None


def format_validation_error(exc: ValidationError, model: type[BaseModel]) -> str:
    """
    Turn a pydantic ValidationError into one readable sentence per problem.

    Messages name the parameter as the caller spelled it (the alias) and
    the expected shape, e.g. ``gencodeId parameter is required and must be
    a non-empty array of gene IDs``.
    """
    messages = []
    for error in exc.errors():
        loc = error.get("loc") or ()
        param = str(loc[0]) if loc else "arguments"
        shape = _field_shape(model, param)
        kind = error.get("type")

        if kind == "missing":
            message = f"{param} parameter is required"
            if shape:
                message += f" and must be a {shape}"
        elif kind == "extra_forbidden":
            message = f"Unexpected parameter: {param}"
        elif shape:
            message = f"{param} must be a {shape} ({error.get('msg')})"
        else:
            message = f"{param}: {error.get('msg')}"
        messages.append(message)

    return "; ".join(messages)


def quota_advisory(ids: Sequence[str], maximum: int, template: str) -> Optional[ToolResult]:
    """
    Advisory result when an id list is longer than an operation allows.

    Returns None when the list fits. The advisory is not an error: the
    caller is told to shrink the list and no request is made.
    """
    if len(ids) <= maximum:
        return None
    logger.info(f"Id list of {len(ids)} exceeds maximum {maximum}")
    return ToolResult(text=template.format(maximum=maximum))
