"""
Constants used throughout the application.

Includes GTEx identifiers, page sizes, per-tool list limits and
user-facing message templates.
"""

from enum import Enum

# ============================================================================
# MCP Protocol Constants
# ============================================================================

CHARACTER_LIMIT = 25000  # Maximum response size
TRUNCATION_MESSAGE = (
    "\n\n⚠️ Response truncated to stay within {limit:,} character limit. "
    "Use pagination (page/pageSize) or filters to refine results."
)

# ============================================================================
# GTEx Portal API
# ============================================================================

GTEX_API_BASE = "https://gtexportal.org/api/v2"
GTEX_USER_AGENT = "GTEx-MCP-Server/1.0.0"
GTEX_TIMEOUT_SECONDS = 30

DEFAULT_DATASET_ID = "gtex_v8"
SINGLE_NUCLEUS_DATASET_ID = "gtex_snrnaseq_pilot"
DEFAULT_GENCODE_VERSION = "v26"
DEFAULT_GENOME_BUILD = "GRCh38/hg38"

GTEX_DATASETS = ["gtex_v8", "gtex_snrnaseq_pilot", "gtex_v10"]

GTEX_TISSUES = [
    "Adipose_Subcutaneous", "Adipose_Visceral_Omentum", "Adrenal_Gland",
    "Artery_Aorta", "Artery_Coronary", "Artery_Tibial", "Bladder",
    "Brain_Amygdala", "Brain_Anterior_cingulate_cortex_BA24",
    "Brain_Caudate_basal_ganglia", "Brain_Cerebellar_Hemisphere",
    "Brain_Cerebellum", "Brain_Cortex", "Brain_Frontal_Cortex_BA9",
    "Brain_Hippocampus", "Brain_Hypothalamus",
    "Brain_Nucleus_accumbens_basal_ganglia", "Brain_Putamen_basal_ganglia",
    "Brain_Spinal_cord_cervical_c-1", "Brain_Substantia_nigra",
    "Breast_Mammary_Tissue", "Cells_Cultured_fibroblasts",
    "Cells_EBV-transformed_lymphocytes", "Cells_Transformed_fibroblasts",
    "Cervix_Ectocervix", "Cervix_Endocervix", "Colon_Sigmoid",
    "Colon_Transverse", "Esophagus_Gastroesophageal_Junction",
    "Esophagus_Mucosa", "Esophagus_Muscularis", "Fallopian_Tube",
    "Heart_Atrial_Appendage", "Heart_Left_Ventricle", "Kidney_Cortex",
    "Kidney_Medulla", "Liver", "Lung", "Minor_Salivary_Gland",
    "Muscle_Skeletal", "Nerve_Tibial", "Ovary", "Pancreas", "Pituitary",
    "Prostate", "Skin_Not_Sun_Exposed_Suprapubic",
    "Skin_Sun_Exposed_Lower_leg", "Small_Intestine_Terminal_Ileum",
    "Spleen", "Stomach", "Testis", "Thyroid", "Uterus", "Vagina",
    "Whole_Blood",
]

# ============================================================================
# Pagination Defaults
# ============================================================================

DEFAULT_PAGE = 0
DEFAULT_PAGE_SIZE = 250
SAMPLE_PAGE_SIZE = 100
TISSUE_PAGE_SIZE = 100
LARGE_PAGE_SIZE = 1000  # Median expression, PCA
TOP_EXPRESSED_LIMIT = 50
TISSUE_SPECIFIC_FETCH = 100
LD_VARIANT_PAGE_SIZE = 100
MAX_GENE_LOOKUP_PAGE = 1000

# ============================================================================
# Per-tool List Limits
# ============================================================================

MAX_EXPRESSION_GENES = 60
MAX_GENE_INFO_GENES = 50
MAX_CLUSTERING_GENES = 20
MAX_CORRELATION_GENES = 10
MIN_COMPARISON_ITEMS = 2

# ============================================================================
# Report Truncation (top-N per section)
# ============================================================================

TOP_TISSUES = 10
TOP_EGENES = 10
TOP_EQTLS = 5
TOP_TRANSCRIPT_TISSUES = 5
TOP_TRANSCRIPTS = 3
TOP_PCA_SAMPLES = 3
TOP_FINE_MAP_VARIANTS = 5
TOP_TISSUE_SPECIFIC = 20
TOP_NEARBY_VARIANTS = 10
SAMPLE_DETAIL_THRESHOLD = 20
SUBJECT_DETAIL_THRESHOLD = 50
BIOBANK_DETAIL_THRESHOLD = 20

# ============================================================================
# Genome Heuristics
# ============================================================================

DEFAULT_LD_WINDOW = 100000
DEFAULT_NEIGHBOR_WINDOW = 1000000
NEARBY_VARIANT_DISTANCE = 50000

# Fixed per-chromosome adjustment for the hg19 -> hg38 offset approximation
CHROMOSOME_OFFSET_ADJUSTMENT = {
    "chr1": 100,
    "chr2": -50,
    "chrx": 200,
    "chry": -100,
}
OFFSET_POSITION_FACTOR = 0.0001

LIFTOVER_URL = "https://genome.ucsc.edu/cgi-bin/hgLiftOver"

# ============================================================================
# Enumerated Choices
# ============================================================================


class SortBy(str, Enum):
    """Ranking statistic for top-expressed genes."""

    MEDIAN = "median"
    MEAN = "mean"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class SelectionCriteria(str, Enum):
    """Tissue-specific gene selection strategy."""

    HIGHEST_IN_GROUP = "highestInGroup"
    ABOVE_THRESHOLD = "aboveThreshold"


class Population(str, Enum):
    """1000 Genomes super-population labels."""

    EUR = "EUR"
    AFR = "AFR"
    AMR = "AMR"
    EAS = "EAS"
    SAS = "SAS"


class Species(str, Enum):
    HUMAN = "human"
    MOUSE = "mouse"


class TranscriptType(str, Enum):
    PROTEIN_CODING = "protein_coding"
    LNCRNA = "lncRNA"
    PSEUDOGENE = "pseudogene"
    MIRNA = "miRNA"


class OntologyType(str, Enum):
    """Gene Ontology aspects."""

    BIOLOGICAL_PROCESS = "biological_process"
    CELLULAR_COMPONENT = "cellular_component"
    MOLECULAR_FUNCTION = "molecular_function"


class GenomeBuild(str, Enum):
    HG19 = "hg19"
    HG38 = "hg38"


# ============================================================================
# Standard Annotations
# ============================================================================

# Read-only tools backed by the GTEx Portal
READONLY_ANNOTATIONS = {
    "readOnlyHint": True,
    "destructiveHint": False,
    "idempotentHint": True,
    "openWorldHint": True,
}

# Tools computed locally without API calls
INTERNAL_ANNOTATIONS = {
    "readOnlyHint": True,
    "destructiveHint": False,
    "idempotentHint": True,
    "openWorldHint": False,
}

# ============================================================================
# Client Error Messages
# ============================================================================

ERROR_BAD_REQUEST = "Bad Request: {reason}. Please check your parameters."
ERROR_NOT_FOUND = "Not Found: The requested resource was not found."
ERROR_VALIDATION = "Validation Error: {reason}. Please check your input parameters."
ERROR_SERVER = "Server Error: {reason}. Please try again later."
ERROR_HTTP = "HTTP {status}: {reason}"
ERROR_NETWORK = "Network error: Unable to connect to GTEx Portal API."
ERROR_REQUEST = "Request error: {message}"

PAGING_NOTE = (
    "**Note:** Showing {shown} of {total} total results. "
    "Use page parameter to retrieve additional results."
)

# ============================================================================
# Advisory Messages (oversized id lists)
# ============================================================================

QUOTA_BATCH = "Maximum {maximum} genes can be processed at once. Please reduce the number of genes."
QUOTA_CLUSTERING = "Maximum {maximum} genes can be processed for clustering analysis."
QUOTA_CORRELATION = "Maximum {maximum} genes can be processed for correlation analysis."
