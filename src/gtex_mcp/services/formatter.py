"""
Response formatting service.

Handles number rendering, tissue display names, paging notes and
character-limit enforcement for the Markdown reports every tool emits.
"""

import logging
import math
import re
from typing import Any, Optional

from gtex_mcp.constants import CHARACTER_LIMIT, PAGING_NOTE, TRUNCATION_MESSAGE
from gtex_mcp.schemas import PagingInfo

logger = logging.getLogger(__name__)

_WORD_START = re.compile(r"\b\w")


# ============================================================================
# Number Rendering
# ============================================================================


def _non_finite(value: float) -> Optional[str]:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    return None


def to_fixed(value: Any, digits: int = 3) -> str:
    """
    Render a number with a fixed number of decimals.

    Infinite and NaN values render as ``Infinity``, ``-Infinity`` and
    ``NaN``; missing values render as ``N/A``.
    """
    if value is None:
        return "N/A"
    value = float(value)
    special = _non_finite(value)
    if special:
        return special
    if value == 0:
        value = 0.0  # drop the sign of -0.0
    return f"{value:.{digits}f}"


def to_exponential(value: Any, digits: int = 2) -> str:
    """
    Render a number in scientific notation, e.g. ``1.23e-8``.

    The exponent carries an explicit sign and no zero padding.
    """
    if value is None:
        return "N/A"
    value = float(value)
    special = _non_finite(value)
    if special:
        return special
    mantissa, exponent = f"{value:.{digits}e}".split("e")
    exp = int(exponent)
    sign = "+" if exp >= 0 else "-"
    return f"{mantissa}e{sign}{abs(exp)}"


def to_locale(value: Any) -> str:
    """Render a number with thousands separators (at most 3 decimals)."""
    if value is None:
        return "N/A"
    if isinstance(value, int):
        return f"{value:,}"
    value = float(value)
    special = _non_finite(value)
    if special:
        return special
    if value.is_integer():
        return f"{int(value):,}"
    return f"{value:,.3f}".rstrip("0").rstrip(".")


# ============================================================================
# Labels
# ============================================================================


def display_tissue(tissue_id: Optional[str]) -> str:
    """
    Human-readable tissue name.

    Underscores become spaces, the name is lowercased and the first
    character of every word is uppercased, so ``Brain_Frontal_Cortex_BA9``
    renders as ``Brain Frontal Cortex Ba9`` and hyphenated parts are
    capitalized too (``EBV-transformed`` becomes ``Ebv-Transformed``).
    The identifier itself is never modified for lookups.
    """
    if not tissue_id:
        return "Unknown"
    return _WORD_START.sub(lambda m: m.group().upper(), tissue_id.replace("_", " ").lower())


def gene_key(record: dict[str, Any]) -> str:
    """Group key ``"{geneSymbol} ({gencodeId})"`` for a gene-level record."""
    return f"{record.get('geneSymbol')} ({record.get('gencodeId')})"


def more_marker(remaining: int, noun: str = "", indent: str = "  ") -> str:
    """``... and N more <noun>`` line for truncated lists."""
    suffix = f" {noun}" if noun else ""
    return f"{indent}... and {remaining} more{suffix}"


def truncate_text(text: Optional[str], length: int) -> str:
    """Cut text to length characters, appending an ellipsis when cut."""
    if not text:
        return ""
    if len(text) <= length:
        return text
    return text[:length] + "..."


def paging_note(shown: int, paging_info: Optional[PagingInfo]) -> str:
    """
    Note that more results exist upstream than were returned.

    Returns an empty string when the page already holds everything.
    """
    if paging_info is None or paging_info.total_number_of_items is None:
        return ""
    if paging_info.total_number_of_items <= shown:
        return ""
    return PAGING_NOTE.format(shown=shown, total=paging_info.total_number_of_items)


# ============================================================================
# Character Limit
# ============================================================================


class ResponseFormatter:
    """
    Enforce the response character limit on finished reports.

    Reports are cut at the last natural break before the limit and a
    truncation notice is appended.
    """

    def __init__(self, max_chars: int = CHARACTER_LIMIT):
        self.max_chars = max_chars

    def enforce_limit(self, text: str) -> str:
        if len(text) <= self.max_chars:
            return text

        logger.debug(f"Truncating response from {len(text):,} to {self.max_chars:,} chars")
        return self._truncate_intelligently(text, self.max_chars) + TRUNCATION_MESSAGE.format(
            limit=self.max_chars
        )

    @staticmethod
    def _truncate_intelligently(text: str, max_chars: int) -> str:
        """
        Truncate text at a natural breakpoint.

        Args:
            text: Text to truncate
            max_chars: Maximum characters

        Returns:
            Truncated text
        """
        truncate_at = max_chars
        for break_point in ["\n\n", "\n", ". ", " "]:
            pos = text.rfind(break_point, 0, max_chars)
            if pos > max_chars * 0.8:  # At least 80% of limit
                truncate_at = pos
                break

        return text[:truncate_at]


# Global formatter instance
_formatter: Optional[ResponseFormatter] = None


def get_formatter() -> ResponseFormatter:
    """
    Get global formatter instance (singleton).

    Returns:
        ResponseFormatter sized to the configured character limit
    """
    global _formatter

    if _formatter is None:
        from gtex_mcp.config import settings

        _formatter = ResponseFormatter(max_chars=settings.character_limit)
    return _formatter
