"""
Helpers shared by the tool handlers.
"""

import logging
from typing import Any, Iterable

from gtex_mcp.schemas import ApiResult, ToolResult

logger = logging.getLogger(__name__)


def api_error(what: str, result: ApiResult, verb: str = "retrieving") -> ToolResult:
    """Error-flagged result carrying the client's classified message."""
    logger.warning(f"Upstream failure while {verb} {what}: {result.error}")
    return ToolResult(text=f"Error {verb} {what}: {result.error}", is_error=True)


def report(lines: Iterable[str]) -> ToolResult:
    """Join report lines into a successful result."""
    return ToolResult(text="\n".join(lines).strip())


def yes_no(value: Any) -> str:
    return "Yes" if value else "No"


def dataset_of(records: list[dict[str, Any]], fallback: Any) -> Any:
    """Dataset label for a report header: taken from the data when present."""
    if records and records[0].get("datasetId"):
        return records[0]["datasetId"]
    return fallback
