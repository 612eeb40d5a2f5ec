"""
Unit tests for the response formatting service.
"""

import math

from gtex_mcp.schemas import PagingInfo
from gtex_mcp.services.formatter import (
    ResponseFormatter,
    display_tissue,
    gene_key,
    more_marker,
    paging_note,
    to_exponential,
    to_fixed,
    to_locale,
    truncate_text,
)


class TestNumberRendering:
    """Test fixed, exponential and locale rendering."""

    def test_to_fixed(self):
        assert to_fixed(3.14159) == "3.142"
        assert to_fixed(2, 1) == "2.0"
        assert to_fixed(None) == "N/A"

    def test_to_fixed_non_finite(self):
        assert to_fixed(math.inf) == "Infinity"
        assert to_fixed(-math.inf) == "-Infinity"
        assert to_fixed(math.nan) == "NaN"

    def test_to_exponential(self):
        """Exponent is signed and unpadded."""
        assert to_exponential(1.234e-8) == "1.23e-8"
        assert to_exponential(12345) == "1.23e+4"
        assert to_exponential(0) == "0.00e+0"

    def test_to_locale(self):
        assert to_locale(1234567) == "1,234,567"
        assert to_locale(1500.0) == "1,500"
        assert to_locale(None) == "N/A"


class TestLabels:
    """Test tissue display names and list markers."""

    def test_display_tissue(self):
        """Each word is capitalized, including acronyms."""
        assert display_tissue("Brain_Frontal_Cortex_BA9") == "Brain Frontal Cortex Ba9"
        assert display_tissue("Muscle_Skeletal") == "Muscle Skeletal"

    def test_display_tissue_hyphenated(self):
        """Letters after a hyphen start a new word."""
        assert display_tissue("Cells_EBV-transformed_lymphocytes") == "Cells Ebv-Transformed Lymphocytes"
        assert display_tissue("Brain_Spinal_cord_cervical_c-1") == "Brain Spinal Cord Cervical C-1"

    def test_display_tissue_missing(self):
        assert display_tissue(None) == "Unknown"

    def test_gene_key(self):
        record = {"geneSymbol": "TP53", "gencodeId": "ENSG00000141510.16"}
        assert gene_key(record) == "TP53 (ENSG00000141510.16)"

    def test_more_marker(self):
        assert more_marker(2, "tissues") == "  ... and 2 more tissues"
        assert more_marker(3, indent="") == "... and 3 more"

    def test_truncate_text(self):
        assert truncate_text("abcdef", 3) == "abc..."
        assert truncate_text("abc", 3) == "abc"
        assert truncate_text(None, 3) == ""


class TestPagingNote:
    """Test paging_note()."""

    def test_more_upstream(self):
        note = paging_note(250, PagingInfo(totalNumberOfItems=1000))

        assert "Showing 250 of 1000 total results" in note
        assert "page parameter" in note

    def test_everything_returned(self):
        assert paging_note(10, PagingInfo(totalNumberOfItems=10)) == ""

    def test_no_paging_info(self):
        assert paging_note(10, None) == ""


class TestResponseFormatter:
    """Test character limit enforcement."""

    def test_short_text_unchanged(self):
        formatter = ResponseFormatter(max_chars=1000)
        assert formatter.enforce_limit("short") == "short"

    def test_long_text_truncated_at_break(self):
        """Long reports are cut at a line break and carry a notice."""
        formatter = ResponseFormatter(max_chars=1000)
        lines = [f"line {i:04d} " + "x" * 40 for i in range(100)]
        text = "\n".join(lines)

        result = formatter.enforce_limit(text)
        body, notice = result.split("\n\n", 1)

        assert len(body) <= 1000
        assert body.endswith("x" * 40)
        assert text.startswith(body)
        assert "truncated to stay within 1,000 character limit" in notice
