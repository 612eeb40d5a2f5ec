"""
Pydantic schemas for all data structures.

Includes the API and tool result envelopes plus one explicit input model
per tool. Field aliases match the camelCase argument names published in
the tool registry.
"""

from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from gtex_mcp.constants import (
    DEFAULT_LD_WINDOW,
    DEFAULT_NEIGHBOR_WINDOW,
    DEFAULT_PAGE,
    DEFAULT_PAGE_SIZE,
    MIN_COMPARISON_ITEMS,
    SAMPLE_PAGE_SIZE,
    SINGLE_NUCLEUS_DATASET_ID,
    TOP_EXPRESSED_LIMIT,
    GenomeBuild,
    OntologyType,
    Population,
    SelectionCriteria,
    SortBy,
    SortDirection,
    Species,
    TranscriptType,
)

# ============================================================================
# Result Envelopes
# ============================================================================


class PagingInfo(BaseModel):
    """Paging metadata returned alongside list endpoints."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    number_of_pages: Optional[int] = Field(default=None, alias="numberOfPages")
    page: Optional[int] = None
    max_items_per_page: Optional[int] = Field(default=None, alias="maxItemsPerPage")
    total_number_of_items: Optional[int] = Field(default=None, alias="totalNumberOfItems")


class ApiResult(BaseModel):
    """
    Outcome of one GTEx API request.

    Exactly one of ``data`` or ``error`` is meaningful: the client never
    raises, it reports failures through ``error`` (and ``status`` when an
    HTTP response was received).
    """

    data: Any = None
    paging_info: Optional[PagingInfo] = None
    error: Optional[str] = None
    status: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def records(self) -> list[dict[str, Any]]:
        """Data as a list of rows (empty when missing)."""
        if not self.data:
            return []
        if isinstance(self.data, list):
            return self.data
        return [self.data]


class ToolResult(BaseModel):
    """Text report produced by a tool handler."""

    text: str
    is_error: bool = False


# ============================================================================
# Base Models
# ============================================================================


def _as_list(value: Any) -> Any:
    """Accept a single identifier where a list of identifiers is expected."""
    if value is None or isinstance(value, list):
        return value
    if isinstance(value, (tuple, set)):
        return list(value)
    return [value]


# List of identifiers that also accepts a single bare identifier
IdList = Annotated[list[str], BeforeValidator(_as_list)]


class BaseToolInput(BaseModel):
    """Base class for all tool input schemas."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
        extra="forbid",  # Reject unknown fields
    )


class DatasetToolInput(BaseToolInput):
    """Tools that accept an optional GTEx dataset."""

    dataset_id: Optional[str] = Field(
        default=None,
        alias="datasetId",
        description="GTEx dataset ID string",
    )


class PaginatedToolInput(DatasetToolInput):
    """Tools that pass GTEx paging parameters through."""

    page: int = Field(
        default=DEFAULT_PAGE,
        ge=0,
        description="page number (integer >= 0)",
    )
    page_size: int = Field(
        default=DEFAULT_PAGE_SIZE,
        alias="pageSize",
        ge=1,
        le=1000,
        description="items per page (integer 1-1000)",
    )


# ============================================================================
# Expression Tools
# ============================================================================


class GeneExpressionInput(PaginatedToolInput):
    """Input for get_gene_expression."""

    gencode_ids: IdList = Field(
        ...,
        alias="gencodeId",
        min_length=1,
        description="non-empty array of gene IDs (GENCODE IDs or gene symbols)",
    )
    tissue_ids: Optional[IdList] = Field(
        default=None,
        alias="tissueSiteDetailId",
        description="array of tissue site detail IDs",
    )
    attribute_subset: Optional[str] = Field(
        default=None,
        alias="attributeSubset",
        description="attribute name string (e.g. sex, ageBracket)",
    )


class MedianExpressionInput(DatasetToolInput):
    """Input for get_median_gene_expression and get_median_transcript_expression."""

    gencode_ids: IdList = Field(
        ...,
        alias="gencodeId",
        min_length=1,
        description="non-empty array of gene IDs",
    )
    tissue_ids: Optional[IdList] = Field(
        default=None,
        alias="tissueSiteDetailId",
        description="array of tissue site detail IDs",
    )


class TopExpressedGenesInput(DatasetToolInput):
    """Input for get_top_expressed_genes."""

    tissue_id: str = Field(
        ...,
        alias="tissueSiteDetailId",
        min_length=1,
        description="tissue ID string",
    )
    filter_mt_genes: bool = Field(default=True, alias="filterMtGenes")
    sort_by: SortBy = Field(default=SortBy.MEDIAN, alias="sortBy")
    sort_direction: SortDirection = Field(default=SortDirection.DESC, alias="sortDirection")
    limit: int = Field(
        default=TOP_EXPRESSED_LIMIT,
        ge=1,
        le=1000,
        description="number of genes (integer 1-1000)",
    )


class TissueSpecificGenesInput(DatasetToolInput):
    """Input for get_tissue_specific_genes."""

    tissue_id: str = Field(
        ...,
        alias="tissueSiteDetailId",
        min_length=1,
        description="tissue ID string",
    )
    selection_criteria: SelectionCriteria = Field(
        default=SelectionCriteria.HIGHEST_IN_GROUP,
        alias="selectionCriteria",
    )


class MultiGeneInput(DatasetToolInput):
    """Input for get_clustered_expression."""

    gencode_ids: IdList = Field(
        ...,
        alias="gencodeIds",
        min_length=1,
        description="non-empty array of gene IDs",
    )


class CorrelationInput(DatasetToolInput):
    """Input for calculate_expression_correlation."""

    gencode_ids: IdList = Field(
        ...,
        alias="gencodeIds",
        min_length=MIN_COMPARISON_ITEMS,
        description="array of at least 2 gene IDs for correlation analysis",
    )


class DifferentialExpressionInput(DatasetToolInput):
    """Input for get_differential_expression."""

    gencode_id: str = Field(
        ...,
        alias="gencodeId",
        min_length=1,
        description="gene ID string",
    )
    comparison_groups: IdList = Field(
        ...,
        alias="comparisonGroups",
        min_length=MIN_COMPARISON_ITEMS,
        description="array of at least 2 tissue groups",
    )


class ExpressionPcaInput(DatasetToolInput):
    """Input for get_expression_pca."""

    tissue_ids: IdList = Field(
        ...,
        alias="tissueSiteDetailId",
        min_length=1,
        description="non-empty array of tissue IDs",
    )
    sample_ids: Optional[IdList] = Field(
        default=None,
        alias="sampleId",
        description="array of sample IDs",
    )


class SingleNucleusExpressionInput(BaseToolInput):
    """Input for get_single_nucleus_expression."""

    gencode_ids: IdList = Field(
        ...,
        alias="gencodeId",
        min_length=1,
        description="non-empty array of gene IDs",
    )
    dataset_id: str = Field(default=SINGLE_NUCLEUS_DATASET_ID, alias="datasetId")
    tissue_ids: Optional[IdList] = Field(default=None, alias="tissueSiteDetailId")
    exclude_data_array: bool = Field(default=True, alias="excludeDataArray")


class SingleNucleusSummaryInput(BaseToolInput):
    """Input for get_single_nucleus_summary."""

    dataset_id: str = Field(default=SINGLE_NUCLEUS_DATASET_ID, alias="datasetId")
    tissue_ids: Optional[IdList] = Field(default=None, alias="tissueSiteDetailId")


# ============================================================================
# Association Tools
# ============================================================================


class EqtlGenesInput(PaginatedToolInput):
    """Input for get_eqtl_genes."""

    chromosome: str = Field(..., alias="chr", min_length=1, description="chromosome string (e.g. chr1)")
    start: int = Field(..., ge=1, description="start position (integer >= 1)")
    end: int = Field(..., ge=1, description="end position (integer >= 1)")
    tissue_ids: Optional[IdList] = Field(default=None, alias="tissueSiteDetailId")


class SingleTissueEqtlInput(PaginatedToolInput):
    """Input for get_single_tissue_eqtls."""

    gencode_ids: IdList = Field(
        ...,
        alias="gencodeId",
        min_length=1,
        description="gene ID string or array of gene IDs",
    )
    tissue_ids: IdList = Field(
        ...,
        alias="tissueSiteDetailId",
        min_length=1,
        description="tissue ID string or array of tissue IDs",
    )
    variant_ids: Optional[IdList] = Field(default=None, alias="variantId")


class DynamicEqtlInput(DatasetToolInput):
    """Input for calculate_dynamic_eqtl."""

    gencode_id: str = Field(..., alias="gencodeId", min_length=1, description="gene ID string")
    snp_id: str = Field(..., alias="snpId", min_length=1, description="variant ID string")
    tissue_ids: IdList = Field(
        ...,
        alias="tissueSiteDetailIds",
        min_length=1,
        description="non-empty array of tissue IDs",
    )


class MultiTissueEqtlInput(DatasetToolInput):
    """Input for get_multi_tissue_eqtls."""

    gencode_id: str = Field(..., alias="gencodeId", min_length=1, description="gene ID string")
    variant_id: Optional[str] = Field(default=None, alias="variantId")


class SqtlInput(DatasetToolInput):
    """Input for get_sqtl_results."""

    gencode_id: str = Field(..., alias="gencodeId", min_length=1, description="gene ID string")
    tissue_ids: Optional[IdList] = Field(default=None, alias="tissueSiteDetailId")


class FineMappingInput(DatasetToolInput):
    """Input for get_fine_mapping."""

    gencode_ids: IdList = Field(
        ...,
        alias="gencodeId",
        min_length=1,
        description="non-empty array of gene IDs",
    )
    variant_id: Optional[str] = Field(default=None, alias="variantId")
    tissue_ids: Optional[IdList] = Field(default=None, alias="tissueSiteDetailId")


class LdStructureInput(BaseToolInput):
    """Input for analyze_ld_structure."""

    chromosome: str = Field(..., alias="chr", min_length=1, description="chromosome string (e.g. chr1)")
    position: int = Field(..., ge=1, description="genomic position (integer >= 1)")
    window_size: int = Field(
        default=DEFAULT_LD_WINDOW,
        alias="windowSize",
        ge=1,
        description="window size in bp (integer >= 1)",
    )
    population: Population = Population.EUR


# ============================================================================
# Reference / Dataset Tools
# ============================================================================


class GeneSearchInput(BaseToolInput):
    """Input for search_genes."""

    query: str = Field(
        ...,
        min_length=1,
        description="search string (gene symbol, GENCODE ID, or keyword)",
    )
    species: Species = Species.HUMAN
    page: int = Field(default=DEFAULT_PAGE, ge=0)
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, alias="pageSize", ge=1, le=1000)


class GeneInfoInput(BaseToolInput):
    """Input for get_gene_info."""

    gencode_ids: Optional[IdList] = Field(
        default=None,
        alias="gencodeId",
        description="GENCODE ID string or array",
    )
    gene_symbols: Optional[IdList] = Field(
        default=None,
        alias="geneSymbol",
        description="gene symbol string or array",
    )

    @property
    def gene_ids(self) -> list[str]:
        """GENCODE IDs when given, otherwise gene symbols."""
        return self.gencode_ids or self.gene_symbols or []


class VariantsInput(PaginatedToolInput):
    """Input for get_variants."""

    chromosome: str = Field(..., alias="chr", min_length=1, description="chromosome string (e.g. chr1)")
    start: int = Field(..., ge=1, description="start position (integer >= 1)")
    end: int = Field(..., ge=1, description="end position (integer >= 1)")
    snp_id: Optional[str] = Field(default=None, alias="snpId")
    variant_id: Optional[str] = Field(default=None, alias="variantId")


class TissueInfoInput(DatasetToolInput):
    """Input for get_tissue_info."""

    tissue_ids: Optional[IdList] = Field(default=None, alias="tissueSiteDetailId")


class SampleInfoInput(PaginatedToolInput):
    """Input for get_sample_info."""

    tissue_ids: Optional[IdList] = Field(default=None, alias="tissueSiteDetailId")
    subject_ids: Optional[IdList] = Field(default=None, alias="subjectId")
    sample_ids: Optional[IdList] = Field(default=None, alias="sampleId")
    sex: Optional[str] = None
    age_brackets: Optional[IdList] = Field(default=None, alias="ageBracket")
    page_size: int = Field(default=SAMPLE_PAGE_SIZE, alias="pageSize", ge=1, le=1000)


class SubjectInput(PaginatedToolInput):
    """Input for get_subject_phenotypes."""

    subject_ids: Optional[IdList] = Field(default=None, alias="subjectId")
    sex: Optional[str] = None
    age_brackets: Optional[IdList] = Field(default=None, alias="ageBracket")
    hardy_scale: Optional[str] = Field(default=None, alias="hardyScale")


class BiobankInput(BaseToolInput):
    """Input for get_biobank_samples."""

    tissue_ids: Optional[IdList] = Field(default=None, alias="tissueSiteDetailId")
    material_types: Optional[IdList] = Field(default=None, alias="materialType")
    sex: Optional[str] = None
    age_brackets: Optional[IdList] = Field(default=None, alias="ageBracket")
    page: int = Field(default=DEFAULT_PAGE, ge=0)
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, alias="pageSize", ge=1, le=1000)


class GeneIdInput(BaseToolInput):
    """Input for validate_gene_id."""

    gene_ids: IdList = Field(
        ...,
        alias="geneId",
        min_length=1,
        description="gene ID string or array (GENCODE ID or gene symbol)",
    )


class VariantIdInput(BaseToolInput):
    """Input for validate_variant_id."""

    variant_ids: IdList = Field(
        ...,
        alias="variantId",
        min_length=1,
        description="variant ID string or array",
    )
    chromosome: Optional[str] = Field(default=None, alias="chr")
    position: Optional[int] = Field(default=None, ge=1)


class DatasetInfoInput(BaseToolInput):
    """Input for get_dataset_info."""

    dataset_id: Optional[str] = Field(default=None, alias="datasetId")


class TranscriptSearchInput(BaseToolInput):
    """Input for search_transcripts."""

    gencode_id: str = Field(..., alias="gencodeId", min_length=1, description="GENCODE gene ID string")
    transcript_type: Optional[TranscriptType] = Field(default=None, alias="transcriptType")


class GeneOntologyInput(BaseToolInput):
    """Input for get_gene_ontology."""

    gencode_id: str = Field(..., alias="gencodeId", min_length=1, description="GENCODE gene ID string")
    ontology_type: Optional[OntologyType] = Field(default=None, alias="ontologyType")


class CoordinateInput(BaseToolInput):
    """Input for convert_coordinates."""

    chromosome: str = Field(..., alias="chr", min_length=1, description="chromosome string (e.g. chr1)")
    position: int = Field(..., ge=1, description="genomic position (integer >= 1)")
    from_build: GenomeBuild = Field(default=GenomeBuild.HG38, alias="fromBuild")
    to_build: GenomeBuild = Field(default=GenomeBuild.HG19, alias="toBuild")


class NeighborGenesInput(BaseToolInput):
    """Input for get_neighbor_genes."""

    chromosome: str = Field(..., alias="chr", min_length=1, description="chromosome string (e.g. chr1)")
    position: int = Field(..., ge=1, description="genomic position (integer >= 1)")
    window_size: int = Field(
        default=DEFAULT_NEIGHBOR_WINDOW,
        alias="windowSize",
        ge=1,
        description="window size in bp (integer >= 1)",
    )


class EmptyInput(BaseToolInput):
    """Input for tools without parameters."""
