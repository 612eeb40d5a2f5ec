"""
Unit tests for tool input models and validation messages.
"""

import pytest
from pydantic import ValidationError

from gtex_mcp.constants import Population, SortBy
from gtex_mcp.schemas import (
    CorrelationInput,
    EqtlGenesInput,
    GeneExpressionInput,
    LdStructureInput,
    SampleInfoInput,
    TopExpressedGenesInput,
)
from gtex_mcp.services.validation import format_validation_error, quota_advisory


class TestIdLists:
    """Test single-or-list identifier fields."""

    def test_single_id_wrapped(self):
        params = GeneExpressionInput.model_validate({"gencodeId": "ENSG1"})
        assert params.gencode_ids == ["ENSG1"]

    def test_list_kept(self):
        params = GeneExpressionInput.model_validate({"gencodeId": ["ENSG1", "ENSG2"]})
        assert params.gencode_ids == ["ENSG1", "ENSG2"]

    def test_empty_list_rejected(self):
        with pytest.raises(ValidationError):
            GeneExpressionInput.model_validate({"gencodeId": []})

    def test_correlation_needs_two(self):
        with pytest.raises(ValidationError):
            CorrelationInput.model_validate({"gencodeIds": ["ENSG1"]})


class TestDefaults:
    """Test parameter defaults."""

    def test_paging_defaults(self):
        params = GeneExpressionInput.model_validate({"gencodeId": "ENSG1"})
        assert params.page == 0
        assert params.page_size == 250
        assert params.dataset_id is None

    def test_sample_page_size(self):
        assert SampleInfoInput.model_validate({}).page_size == 100

    def test_top_expressed_defaults(self):
        params = TopExpressedGenesInput.model_validate({"tissueSiteDetailId": "Liver"})
        assert params.filter_mt_genes is True
        assert params.sort_by == SortBy.MEDIAN
        assert params.limit == 50

    def test_ld_defaults(self):
        params = LdStructureInput.model_validate({"chr": "chr1", "position": 10})
        assert params.window_size == 100000
        assert params.population == Population.EUR


class TestValidationMessages:
    """Test format_validation_error()."""

    def test_missing_field(self):
        with pytest.raises(ValidationError) as exc_info:
            GeneExpressionInput.model_validate({})

        message = format_validation_error(exc_info.value, GeneExpressionInput)
        assert message == (
            "gencodeId parameter is required and must be a "
            "non-empty array of gene IDs (GENCODE IDs or gene symbols)"
        )

    def test_wrong_type(self):
        with pytest.raises(ValidationError) as exc_info:
            EqtlGenesInput.model_validate({"chr": "chr1", "start": "abc", "end": 10})

        message = format_validation_error(exc_info.value, EqtlGenesInput)
        assert message.startswith("start must be a start position (integer >= 1)")

    def test_bad_enum(self):
        with pytest.raises(ValidationError) as exc_info:
            LdStructureInput.model_validate({"chr": "chr1", "position": 10, "population": "XYZ"})

        message = format_validation_error(exc_info.value, LdStructureInput)
        assert message.startswith("population:")


class TestQuotaAdvisory:
    """Test quota_advisory()."""

    def test_within_limit(self):
        assert quota_advisory(["a"] * 60, 60, "Max {maximum}") is None

    def test_over_limit(self):
        advisory = quota_advisory(["a"] * 61, 60, "Max {maximum}")
        assert advisory.text == "Max 60"
        assert not advisory.is_error
