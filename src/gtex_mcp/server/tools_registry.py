"""
Tool Registry - All 33 MCP Tool Definitions

This module contains the tool definitions (schemas and descriptions)
for the GTEx Portal tools. Handler implementations live in
server/handlers/ and are wired up in server/dispatch.py.
"""

import mcp.types as types

from gtex_mcp.constants import (
    DEFAULT_DATASET_ID,
    DEFAULT_LD_WINDOW,
    DEFAULT_NEIGHBOR_WINDOW,
    DEFAULT_PAGE_SIZE,
    GTEX_DATASETS,
    GTEX_TISSUES,
    INTERNAL_ANNOTATIONS,
    READONLY_ANNOTATIONS,
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


def get_all_tools() -> list[types.Tool]:
    """Return list of all tool definitions."""
    return TOOL_DEFINITIONS


def _id_list(description: str) -> dict:
    """A string or an array of strings."""
    return {
        "anyOf": [
            {"type": "string"},
            {"type": "array", "items": {"type": "string"}},
        ],
        "description": description,
    }


def _enum(choices, default, description: str) -> dict:
    return {
        "type": "string",
        "enum": [c.value for c in choices],
        "default": default.value,
        "description": description,
    }


_READONLY = types.ToolAnnotations(**READONLY_ANNOTATIONS)
_INTERNAL = types.ToolAnnotations(**INTERNAL_ANNOTATIONS)

_DATASET = {
    "type": "string",
    "default": DEFAULT_DATASET_ID,
    "description": f"GTEx dataset ID, one of {', '.join(GTEX_DATASETS)} (default: {DEFAULT_DATASET_ID})",
}
_GENCODE_ID = {"type": "string", "description": "GENCODE gene ID (e.g., ENSG00000223972.5)"}
_GENCODE_IDS = _id_list("GENCODE gene ID or array of IDs (e.g., ENSG00000223972.5)")
_TISSUE_ID = {
    "type": "string",
    "description": "Tissue site detail ID (e.g., Muscle_Skeletal, Brain_Cortex)",
    "examples": GTEX_TISSUES[:3],
}
_TISSUE_IDS = _id_list("Tissue site detail ID or array of IDs (optional)")
_CHROMOSOME = {"type": "string", "description": "Chromosome (e.g., chr1, chr2, chrX)"}
_POSITION = {"type": "integer", "minimum": 1, "description": "Genomic position (1-based)"}
_PAGE = {"type": "integer", "minimum": 0, "default": 0, "description": "Page number for pagination (default: 0)"}
_SEX = {"type": "string", "description": "Subject sex filter (male or female)"}
_AGE_BRACKETS = _id_list("Age bracket(s), e.g. 60-69")


def _page_size(default: int) -> dict:
    return {
        "type": "integer",
        "minimum": 1,
        "maximum": 1000,
        "default": default,
        "description": f"Number of results per page (default: {default})",
    }


# All 33 tool definitions
TOOL_DEFINITIONS = [
    # ========================================================================
    # Expression
    # ========================================================================
    types.Tool(
        name="get_gene_expression",
        description="""Get gene expression data across tissues for a specific gene.

Returns sample-level TPM summaries (samples, mean, median, range, non-zero
fraction) per gene and tissue. At most 60 genes per call.

Examples:
- gencodeId="ENSG00000012048.20"
- gencodeId=["ENSG00000012048.20"], tissueSiteDetailId=["Liver", "Lung"], attributeSubset="sex"
""",
        inputSchema={
            "type": "object",
            "properties": {
                "gencodeId": _GENCODE_IDS,
                "datasetId": _DATASET,
                "tissueSiteDetailId": _TISSUE_IDS,
                "attributeSubset": {
                    "type": "string",
                    "description": "Subset samples by attribute (e.g., sex, ageBracket)",
                },
                "page": _PAGE,
                "pageSize": _page_size(DEFAULT_PAGE_SIZE),
            },
            "required": ["gencodeId"],
        },
        annotations=_READONLY,
    ),
    types.Tool(
        name="get_median_gene_expression",
        description="""Get median gene expression levels across tissues.

Lists the top expressing tissues per gene with an expression summary.
At most 60 genes per call.
""",
        inputSchema={
            "type": "object",
            "properties": {
                "gencodeId": _GENCODE_IDS,
                "datasetId": _DATASET,
                "tissueSiteDetailId": _TISSUE_IDS,
            },
            "required": ["gencodeId"],
        },
        annotations=_READONLY,
    ),
    types.Tool(
        name="get_top_expressed_genes",
        description="Get top expressed genes in a specific tissue",
        inputSchema={
            "type": "object",
            "properties": {
                "tissueSiteDetailId": _TISSUE_ID,
                "filterMtGenes": {
                    "type": "boolean",
                    "default": True,
                    "description": "Filter out mitochondrial genes (default: true)",
                },
                "sortBy": _enum(SortBy, SortBy.MEDIAN, "Sort criteria (default: median)"),
                "sortDirection": _enum(
                    SortDirection, SortDirection.DESC, "Sort direction (default: desc)"
                ),
                "datasetId": _DATASET,
                "limit": {
                    "type": "integer",
                    "minimum": 1,
                    "maximum": 1000,
                    "default": TOP_EXPRESSED_LIMIT,
                    "description": f"Number of genes (default: {TOP_EXPRESSED_LIMIT})",
                },
            },
            "required": ["tissueSiteDetailId"],
        },
        annotations=_READONLY,
    ),
    types.Tool(
        name="get_tissue_specific_genes",
        description="""Get genes with tissue-specific expression patterns.

Candidates are the tissue's top expressed genes (mitochondrial genes
excluded); true specificity needs a comparison across all tissues.
""",
        inputSchema={
            "type": "object",
            "properties": {
                "tissueSiteDetailId": _TISSUE_ID,
                "selectionCriteria": _enum(
                    SelectionCriteria,
                    SelectionCriteria.HIGHEST_IN_GROUP,
                    "Selection criteria for tissue specificity (default: highestInGroup)",
                ),
                "datasetId": _DATASET,
            },
            "required": ["tissueSiteDetailId"],
        },
        annotations=_READONLY,
    ),
    types.Tool(
        name="get_clustered_expression",
        description="Get clustered gene expression data for visualization (at most 20 genes)",
        inputSchema={
            "type": "object",
            "properties": {
                "gencodeIds": _id_list("Array of GENCODE gene IDs"),
                "datasetId": _DATASET,
            },
            "required": ["gencodeIds"],
        },
        annotations=_READONLY,
    ),
    types.Tool(
        name="calculate_expression_correlation",
        description="""Calculate expression correlation between genes across tissues.

Pearson r over median TPM for every gene pair (2 to 10 genes).
""",
        inputSchema={
            "type": "object",
            "properties": {
                "gencodeIds": {
                    "type": "array",
                    "items": {"type": "string"},
                    "minItems": 2,
                    "description": "Array of GENCODE gene IDs to compare",
                },
                "datasetId": _DATASET,
            },
            "required": ["gencodeIds"],
        },
        annotations=_READONLY,
    ),
    types.Tool(
        name="get_differential_expression",
        description="""Get differential gene expression between tissue groups.

Tissues are assigned to the first group whose name they contain
(e.g., "brain" matches every Brain_* tissue). Fold changes compare group
mean median TPM; no statistical test is performed.
""",
        inputSchema={
            "type": "object",
            "properties": {
                "gencodeId": _GENCODE_ID,
                "comparisonGroups": {
                    "type": "array",
                    "items": {"type": "string"},
                    "minItems": 2,
                    "description": "Array of tissue groups to compare",
                },
                "datasetId": _DATASET,
            },
            "required": ["gencodeId", "comparisonGroups"],
        },
        annotations=_READONLY,
    ),
    types.Tool(
        name="get_median_transcript_expression",
        description="Get median transcript (isoform) expression across tissues for genes",
        inputSchema={
            "type": "object",
            "properties": {
                "gencodeId": _GENCODE_IDS,
                "datasetId": _DATASET,
                "tissueSiteDetailId": _TISSUE_IDS,
            },
            "required": ["gencodeId"],
        },
        annotations=_READONLY,
    ),
    types.Tool(
        name="get_expression_pca",
        description="Get expression principal components (PC1-PC3) for samples in tissues",
        inputSchema={
            "type": "object",
            "properties": {
                "tissueSiteDetailId": _id_list("Tissue site detail ID or array of IDs"),
                "datasetId": _DATASET,
                "sampleId": _id_list("Sample ID or array of IDs (optional)"),
            },
            "required": ["tissueSiteDetailId"],
        },
        annotations=_READONLY,
    ),
    types.Tool(
        name="get_single_nucleus_expression",
        description="Get single nucleus RNA-seq expression by cell type for genes",
        inputSchema={
            "type": "object",
            "properties": {
                "gencodeId": _GENCODE_IDS,
                "datasetId": {
                    "type": "string",
                    "default": SINGLE_NUCLEUS_DATASET_ID,
                    "description": f"GTEx dataset ID (default: {SINGLE_NUCLEUS_DATASET_ID})",
                },
                "tissueSiteDetailId": _TISSUE_IDS,
                "excludeDataArray": {
                    "type": "boolean",
                    "default": True,
                    "description": "Omit per-cell expression arrays (default: true)",
                },
            },
            "required": ["gencodeId"],
        },
        annotations=_READONLY,
    ),
    types.Tool(
        name="get_single_nucleus_summary",
        description="Get single nucleus RNA-seq cell counts per cell type and tissue",
        inputSchema={
            "type": "object",
            "properties": {
                "datasetId": {
                    "type": "string",
                    "default": SINGLE_NUCLEUS_DATASET_ID,
                    "description": f"GTEx dataset ID (default: {SINGLE_NUCLEUS_DATASET_ID})",
                },
                "tissueSiteDetailId": _TISSUE_IDS,
            },
        },
        annotations=_READONLY,
    ),
    # ========================================================================
    # Association
    # ========================================================================
    types.Tool(
        name="get_eqtl_genes",
        description="""Get genes with eQTL associations for a genomic region.

The region is echoed in the report; eGenes are listed per tissue by
q-value and are not filtered to the region.
""",
        inputSchema={
            "type": "object",
            "properties": {
                "chr": _CHROMOSOME,
                "start": {"type": "integer", "minimum": 1, "description": "Start position (1-based)"},
                "end": {"type": "integer", "minimum": 1, "description": "End position (1-based)"},
                "tissueSiteDetailId": _id_list(
                    "Tissue site detail ID (optional, for tissue-specific results)"
                ),
                "datasetId": _DATASET,
                "page": _PAGE,
                "pageSize": _page_size(DEFAULT_PAGE_SIZE),
            },
            "required": ["chr", "start", "end"],
        },
        annotations=_READONLY,
    ),
    types.Tool(
        name="get_single_tissue_eqtls",
        description="Get single-tissue eQTL results for a gene",
        inputSchema={
            "type": "object",
            "properties": {
                "gencodeId": _GENCODE_IDS,
                "tissueSiteDetailId": _id_list(
                    "Tissue site detail ID (e.g., Muscle_Skeletal, Brain_Cortex)"
                ),
                "variantId": _id_list("Variant ID(s) to restrict results (optional)"),
                "datasetId": _DATASET,
                "page": _PAGE,
                "pageSize": _page_size(DEFAULT_PAGE_SIZE),
            },
            "required": ["gencodeId", "tissueSiteDetailId"],
        },
        annotations=_READONLY,
    ),
    types.Tool(
        name="calculate_dynamic_eqtl",
        description="""Calculate dynamic eQTL effects across tissues.

Computes the eQTL on demand for the first tissue given and reports
effect size, genotype counts and expression by genotype.
""",
        inputSchema={
            "type": "object",
            "properties": {
                "gencodeId": _GENCODE_ID,
                "snpId": {"type": "string", "description": "SNP ID (rs number or variant ID)"},
                "tissueSiteDetailIds": {
                    "type": "array",
                    "items": {"type": "string"},
                    "minItems": 1,
                    "description": "Array of tissue site detail IDs to compare",
                },
                "datasetId": _DATASET,
            },
            "required": ["gencodeId", "snpId", "tissueSiteDetailIds"],
        },
        annotations=_READONLY,
    ),
    types.Tool(
        name="get_multi_tissue_eqtls",
        description="Get multi-tissue eQTL meta-analysis results",
        inputSchema={
            "type": "object",
            "properties": {
                "gencodeId": _GENCODE_ID,
                "variantId": {"type": "string", "description": "Variant ID (optional)"},
                "datasetId": _DATASET,
            },
            "required": ["gencodeId"],
        },
        annotations=_READONLY,
    ),
    types.Tool(
        name="get_sqtl_results",
        description="Get splicing QTL (sQTL) results for a gene",
        inputSchema={
            "type": "object",
            "properties": {
                "gencodeId": _GENCODE_ID,
                "tissueSiteDetailId": _id_list(
                    "Tissue site detail ID (optional, for tissue-specific results)"
                ),
                "datasetId": _DATASET,
            },
            "required": ["gencodeId"],
        },
        annotations=_READONLY,
    ),
    types.Tool(
        name="get_fine_mapping",
        description="Get fine-mapping credible sets (variants with PIPs) for genes",
        inputSchema={
            "type": "object",
            "properties": {
                "gencodeId": _GENCODE_IDS,
                "variantId": {"type": "string", "description": "Variant ID (optional)"},
                "tissueSiteDetailId": _TISSUE_IDS,
                "datasetId": _DATASET,
            },
            "required": ["gencodeId"],
        },
        annotations=_READONLY,
    ),
    types.Tool(
        name="analyze_ld_structure",
        description="""Analyze linkage disequilibrium structure around eQTL variants.

Approximation: lists and bins variants near the position. No r² values
are computed.
""",
        inputSchema={
            "type": "object",
            "properties": {
                "chr": _CHROMOSOME,
                "position": _POSITION,
                "windowSize": {
                    "type": "integer",
                    "minimum": 1,
                    "default": DEFAULT_LD_WINDOW,
                    "description": f"Window size around position (default: {DEFAULT_LD_WINDOW})",
                },
                "population": _enum(
                    Population, Population.EUR, "Population for LD analysis (default: EUR)"
                ),
            },
            "required": ["chr", "position"],
        },
        annotations=_READONLY,
    ),
    # ========================================================================
    # Reference / dataset
    # ========================================================================
    types.Tool(
        name="search_genes",
        description="Search for genes by symbol, name, or description",
        inputSchema={
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Search query (gene symbol, name, or description)",
                },
                "species": _enum(Species, Species.HUMAN, "Species (default: human)"),
                "page": _PAGE,
                "pageSize": _page_size(DEFAULT_PAGE_SIZE),
            },
            "required": ["query"],
        },
        annotations=_READONLY,
    ),
    types.Tool(
        name="get_gene_info",
        description="Get detailed information about a specific gene (at most 50 genes)",
        inputSchema={
            "type": "object",
            "properties": {
                "gencodeId": _GENCODE_IDS,
                "geneSymbol": _id_list("Gene symbol (alternative to gencodeId)"),
            },
        },
        annotations=_READONLY,
    ),
    types.Tool(
        name="get_variants",
        description="Get genetic variants in a genomic region",
        inputSchema={
            "type": "object",
            "properties": {
                "chr": _CHROMOSOME,
                "start": {"type": "integer", "minimum": 1, "description": "Start position (1-based)"},
                "end": {"type": "integer", "minimum": 1, "description": "End position (1-based)"},
                "snpId": {"type": "string", "description": "dbSNP rs ID (optional)"},
                "variantId": {"type": "string", "description": "GTEx variant ID (optional)"},
                "datasetId": _DATASET,
                "page": _PAGE,
                "pageSize": _page_size(DEFAULT_PAGE_SIZE),
            },
            "required": ["chr", "start", "end"],
        },
        annotations=_READONLY,
    ),
    types.Tool(
        name="get_tissue_info",
        description="Get information about GTEx tissues and sample counts",
        inputSchema={
            "type": "object",
            "properties": {
                "datasetId": _DATASET,
                "tissueSiteDetailId": _TISSUE_IDS,
            },
        },
        annotations=_READONLY,
    ),
    types.Tool(
        name="get_sample_info",
        description="Get GTEx sample metadata and demographics",
        inputSchema={
            "type": "object",
            "properties": {
                "tissueSiteDetailId": _id_list(
                    "Tissue site detail ID (optional, for tissue-specific samples)"
                ),
                "subjectId": _id_list("GTEx subject ID(s) (optional)"),
                "sampleId": _id_list("GTEx sample ID(s) (optional)"),
                "sex": _SEX,
                "ageBracket": _AGE_BRACKETS,
                "datasetId": _DATASET,
                "page": _PAGE,
                "pageSize": _page_size(SAMPLE_PAGE_SIZE),
            },
        },
        annotations=_READONLY,
    ),
    types.Tool(
        name="get_subject_phenotypes",
        description="Get subject phenotype data and demographics",
        inputSchema={
            "type": "object",
            "properties": {
                "subjectId": _id_list("GTEx subject ID (optional, for specific subject)"),
                "sex": _SEX,
                "ageBracket": _AGE_BRACKETS,
                "hardyScale": {"type": "string", "description": "Hardy scale death classification (optional)"},
                "datasetId": _DATASET,
                "page": _PAGE,
                "pageSize": _page_size(DEFAULT_PAGE_SIZE),
            },
        },
        annotations=_READONLY,
    ),
    types.Tool(
        name="validate_gene_id",
        description="Validate and normalize gene identifiers",
        inputSchema={
            "type": "object",
            "properties": {
                "geneId": _id_list("Gene ID to validate (GENCODE ID or gene symbol)"),
            },
            "required": ["geneId"],
        },
        annotations=_READONLY,
    ),
    types.Tool(
        name="validate_variant_id",
        description="Validate variant identifiers and genomic coordinates",
        inputSchema={
            "type": "object",
            "properties": {
                "variantId": _id_list("Variant ID to validate (rs number or variant ID)"),
                "chr": {"type": "string", "description": "Chromosome (alternative validation method)"},
                "position": {
                    "type": "integer",
                    "minimum": 1,
                    "description": "Genomic position (alternative validation method)",
                },
            },
            "required": ["variantId"],
        },
        annotations=_READONLY,
    ),
    types.Tool(
        name="get_dataset_info",
        description="Get information about available GTEx datasets",
        inputSchema={
            "type": "object",
            "properties": {
                "datasetId": {
                    "type": "string",
                    "description": "Specific dataset ID (optional, returns all if not provided)",
                },
            },
        },
        annotations=_READONLY,
    ),
    types.Tool(
        name="search_transcripts",
        description="Search for gene transcripts and isoforms",
        inputSchema={
            "type": "object",
            "properties": {
                "gencodeId": _GENCODE_ID,
                "transcriptType": {
                    "type": "string",
                    "enum": [t.value for t in TranscriptType],
                    "description": "Transcript type filter (optional)",
                },
            },
            "required": ["gencodeId"],
        },
        annotations=_READONLY,
    ),
    types.Tool(
        name="get_gene_ontology",
        description="""Get Gene Ontology annotations for a gene.

Categories are inferred from the gene description and biotype; use a GO
database for curated annotations.
""",
        inputSchema={
            "type": "object",
            "properties": {
                "gencodeId": _GENCODE_ID,
                "ontologyType": {
                    "type": "string",
                    "enum": [o.value for o in OntologyType],
                    "description": "GO ontology type (optional)",
                },
            },
            "required": ["gencodeId"],
        },
        annotations=_READONLY,
    ),
    types.Tool(
        name="convert_coordinates",
        description="""Convert between different genomic coordinate systems.

Approximate hg19/hg38 shift computed locally; use UCSC liftOver for
accurate conversion.
""",
        inputSchema={
            "type": "object",
            "properties": {
                "chr": _CHROMOSOME,
                "position": {"type": "integer", "minimum": 1, "description": "Genomic position to convert"},
                "fromBuild": _enum(GenomeBuild, GenomeBuild.HG38, "Source genome build (default: hg38)"),
                "toBuild": _enum(GenomeBuild, GenomeBuild.HG19, "Target genome build (default: hg19)"),
            },
            "required": ["chr", "position"],
        },
        annotations=_INTERNAL,
    ),
    types.Tool(
        name="get_neighbor_genes",
        description="Get genes near a genomic position, ordered by distance",
        inputSchema={
            "type": "object",
            "properties": {
                "chr": _CHROMOSOME,
                "position": _POSITION,
                "windowSize": {
                    "type": "integer",
                    "minimum": 1,
                    "default": DEFAULT_NEIGHBOR_WINDOW,
                    "description": f"Window size around position in bp (default: {DEFAULT_NEIGHBOR_WINDOW})",
                },
            },
            "required": ["chr", "position"],
        },
        annotations=_READONLY,
    ),
    types.Tool(
        name="get_service_info",
        description="Get GTEx Portal API service information",
        inputSchema={"type": "object", "properties": {}},
        annotations=_READONLY,
    ),
    types.Tool(
        name="get_biobank_samples",
        description="Get GTEx biobank sample availability by material type",
        inputSchema={
            "type": "object",
            "properties": {
                "tissueSiteDetailId": _TISSUE_IDS,
                "materialType": _id_list("Material type(s) (optional)"),
                "sex": _SEX,
                "ageBracket": _AGE_BRACKETS,
                "page": _PAGE,
                "pageSize": _page_size(DEFAULT_PAGE_SIZE),
            },
        },
        annotations=_READONLY,
    ),
]
