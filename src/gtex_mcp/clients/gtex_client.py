"""
REST API client for the GTEx Portal (API v2).

Provides one coroutine per GTEx endpoint with:
- Connection pooling through a shared httpx.AsyncClient
- Repeated-key serialization for multi-valued query parameters
- Uniform error classification (the client never raises)

There is no retry or caching layer: each call issues exactly
one GET and fails fast on timeout.
"""

import logging
from typing import Any, Iterable, Mapping, Optional

import httpx

from gtex_mcp.constants import (
    DEFAULT_DATASET_ID,
    DEFAULT_GENCODE_VERSION,
    DEFAULT_GENOME_BUILD,
    DEFAULT_PAGE,
    DEFAULT_PAGE_SIZE,
    ERROR_BAD_REQUEST,
    ERROR_HTTP,
    ERROR_NETWORK,
    ERROR_NOT_FOUND,
    ERROR_REQUEST,
    ERROR_SERVER,
    ERROR_VALIDATION,
    GTEX_API_BASE,
    GTEX_TIMEOUT_SECONDS,
    GTEX_USER_AGENT,
    LARGE_PAGE_SIZE,
    MAX_GENE_LOOKUP_PAGE,
    SINGLE_NUCLEUS_DATASET_ID,
    TISSUE_PAGE_SIZE,
)
from gtex_mcp.schemas import ApiResult, PagingInfo

logger = logging.getLogger(__name__)

# How the payload of a successful response maps onto ApiResult.data
_UNWRAP_DATA = "data"  # {"data": [...], "paging_info": {...}}
_UNWRAP_BODY = "body"  # whole body is the result
_UNWRAP_SAMPLE = "sample"  # {"sample": [...]}


def build_query_params(params: Mapping[str, Any]) -> list[tuple[str, str]]:
    """
    Serialize query parameters for the GTEx API.

    None values are dropped, list values become repeated keys
    (``tissueSiteDetailId=A&tissueSiteDetailId=B``) and booleans are
    rendered as ``true``/``false``.

    Args:
        params: Parameter mapping

    Returns:
        Ordered list of (key, value) pairs
    """
    pairs: list[tuple[str, str]] = []
    for key, value in params.items():
        if value is None:
            continue
        values: Iterable[Any] = value if isinstance(value, (list, tuple)) else [value]
        for item in values:
            if item is None:
                continue
            pairs.append((key, _serialize(item)))
    return pairs


def _serialize(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def format_http_error(status: int, reason: str) -> str:
    """Map an HTTP status to the user-facing error message."""
    if status == 400:
        return ERROR_BAD_REQUEST.format(reason=reason)
    if status == 404:
        return ERROR_NOT_FOUND
    if status == 422:
        return ERROR_VALIDATION.format(reason=reason)
    if status == 500:
        return ERROR_SERVER.format(reason=reason)
    return ERROR_HTTP.format(status=status, reason=reason)


class GTExClient:
    """
    HTTP client for the GTEx Portal REST API.

    Every public method returns an ApiResult. Transport failures and
    non-2xx responses are converted into ``ApiResult.error`` so callers
    render them as text instead of handling exceptions.
    """

    def __init__(
        self,
        base_url: str = GTEX_API_BASE,
        timeout: float = GTEX_TIMEOUT_SECONDS,
        user_agent: str = GTEX_USER_AGENT,
        default_dataset_id: str = DEFAULT_DATASET_ID,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize GTEx client.

        Args:
            base_url: Base URL for the API (e.g., https://gtexportal.org/api/v2)
            timeout: Per-request timeout in seconds
            user_agent: User-Agent header value
            default_dataset_id: Dataset used when a call does not name one
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.default_dataset_id = default_dataset_id

        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            headers={
                "User-Agent": user_agent,
                "Accept": "application/json",
            },
            follow_redirects=True,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Any, **kwargs: Any) -> "GTExClient":
        """Build a client from application settings."""
        return cls(
            base_url=settings.gtex_api_base,
            timeout=settings.gtex_timeout_seconds,
            user_agent=settings.gtex_user_agent,
            default_dataset_id=settings.default_dataset_id,
            **kwargs,
        )

    async def close(self) -> None:
        """Close HTTP client and connections."""
        await self.client.aclose()
        logger.info("GTEx client closed")

    async def __aenter__(self) -> "GTExClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def _dataset(self, dataset_id: Optional[str]) -> str:
        return dataset_id or self.default_dataset_id

    async def _get(
        self,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        unwrap: str = _UNWRAP_DATA,
    ) -> ApiResult:
        """
        Issue one GET request and normalize the outcome.

        Args:
            path: Endpoint path relative to the base URL
            params: Query parameters (see build_query_params)
            unwrap: Where the result lives in the response body

        Returns:
            ApiResult with data/paging_info, or error/status on failure
        """
        query = build_query_params(params or {})
        try:
            response = await self.client.get(path, params=query)
            response.raise_for_status()
            result = self._parse_payload(response.json(), unwrap)

        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            message = format_http_error(status, e.response.reason_phrase)
            logger.warning(f"GET {path} failed: {status} - {message}")
            return ApiResult(error=message, status=status)

        except httpx.TransportError as e:
            # Timeouts, DNS failures, refused connections: no response received
            logger.warning(f"GET {path} network error: {e!r}")
            return ApiResult(error=ERROR_NETWORK)

        except Exception as e:
            logger.warning(f"GET {path} request error: {e}")
            return ApiResult(error=ERROR_REQUEST.format(message=str(e)))

        logger.debug(f"GET {path} succeeded (status={response.status_code})")
        return result

    @staticmethod
    def _parse_payload(payload: Any, unwrap: str) -> ApiResult:
        """Map a decoded JSON body onto an ApiResult."""
        if unwrap == _UNWRAP_BODY or not isinstance(payload, dict):
            return ApiResult(data=payload)

        if unwrap == _UNWRAP_SAMPLE:
            return ApiResult(data=payload.get("sample"))

        paging = payload.get("paging_info")
        return ApiResult(
            data=payload.get("data"),
            paging_info=PagingInfo.model_validate(paging) if isinstance(paging, dict) else None,
        )

    # ========================================================================
    # Service / Metadata
    # ========================================================================

    async def get_service_info(self) -> ApiResult:
        return await self._get("/", unwrap=_UNWRAP_BODY)

    async def get_dataset_info(self, dataset_id: Optional[str] = None) -> ApiResult:
        """List dataset metadata, optionally for one dataset."""
        result = await self._get(
            "/metadata/dataset", {"datasetId": dataset_id}, unwrap=_UNWRAP_BODY
        )
        if result.ok and isinstance(result.data, dict):
            # Some deployments wrap the list; normalize to a list of datasets
            inner = result.data.get("data")
            result.data = inner if isinstance(inner, list) else [result.data]
        return result

    # ========================================================================
    # Reference
    # ========================================================================

    async def search_genes(
        self,
        query: str,
        gencode_version: str = DEFAULT_GENCODE_VERSION,
        genome_build: str = DEFAULT_GENOME_BUILD,
        page: int = DEFAULT_PAGE,
        items_per_page: int = DEFAULT_PAGE_SIZE,
    ) -> ApiResult:
        return await self._get(
            "/reference/geneSearch",
            {
                "geneId": query,
                "gencodeVersion": gencode_version,
                "genomeBuild": genome_build,
                "page": page,
                "itemsPerPage": items_per_page,
            },
        )

    async def get_genes(
        self,
        gene_ids: list[str],
        gencode_version: str = DEFAULT_GENCODE_VERSION,
        genome_build: str = DEFAULT_GENOME_BUILD,
    ) -> ApiResult:
        """Look up genes by GENCODE ID or symbol (one page sized to the request)."""
        return await self._get(
            "/reference/gene",
            {
                "geneId": gene_ids,
                "gencodeVersion": gencode_version,
                "genomeBuild": genome_build,
                "page": 0,
                "itemsPerPage": max(1, min(len(gene_ids), MAX_GENE_LOOKUP_PAGE)),
            },
        )

    async def get_transcripts(
        self,
        gencode_id: str,
        gencode_version: str = DEFAULT_GENCODE_VERSION,
        genome_build: str = DEFAULT_GENOME_BUILD,
    ) -> ApiResult:
        return await self._get(
            "/reference/transcript",
            {
                "gencodeId": gencode_id,
                "gencodeVersion": gencode_version,
                "genomeBuild": genome_build,
                "page": 0,
                "itemsPerPage": DEFAULT_PAGE_SIZE,
            },
        )

    async def get_neighbor_genes(
        self,
        chromosome: str,
        position: int,
        window: int,
        gencode_version: str = DEFAULT_GENCODE_VERSION,
        genome_build: str = DEFAULT_GENOME_BUILD,
    ) -> ApiResult:
        return await self._get(
            "/reference/neighborGene",
            {
                "chromosome": chromosome,
                "pos": position,
                "bp_window": window,
                "gencodeVersion": gencode_version,
                "genomeBuild": genome_build,
                "page": 0,
                "itemsPerPage": DEFAULT_PAGE_SIZE,
            },
        )

    async def get_variants(
        self,
        snp_id: Optional[str] = None,
        variant_id: Optional[str] = None,
        dataset_id: Optional[str] = None,
        chromosome: Optional[str] = None,
        positions: Optional[list[int]] = None,
        page: int = DEFAULT_PAGE,
        items_per_page: int = DEFAULT_PAGE_SIZE,
    ) -> ApiResult:
        return await self._get(
            "/dataset/variant",
            {
                "snpId": snp_id,
                "variantId": variant_id,
                "datasetId": self._dataset(dataset_id),
                "chromosome": chromosome,
                "pos": positions,
                "page": page,
                "itemsPerPage": items_per_page,
            },
        )

    # ========================================================================
    # Expression
    # ========================================================================

    async def get_gene_expression(
        self,
        gencode_ids: list[str],
        dataset_id: Optional[str] = None,
        tissue_ids: Optional[list[str]] = None,
        attribute_subset: Optional[str] = None,
        page: int = DEFAULT_PAGE,
        items_per_page: int = DEFAULT_PAGE_SIZE,
    ) -> ApiResult:
        return await self._get(
            "/expression/geneExpression",
            {
                "gencodeId": gencode_ids,
                "datasetId": self._dataset(dataset_id),
                "tissueSiteDetailId": tissue_ids,
                "attributeSubset": attribute_subset,
                "page": page,
                "itemsPerPage": items_per_page,
            },
        )

    async def get_median_gene_expression(
        self,
        gencode_ids: list[str],
        dataset_id: Optional[str] = None,
        tissue_ids: Optional[list[str]] = None,
    ) -> ApiResult:
        return await self._get(
            "/expression/medianGeneExpression",
            {
                "gencodeId": gencode_ids,
                "datasetId": self._dataset(dataset_id),
                "tissueSiteDetailId": tissue_ids,
                "page": 0,
                "itemsPerPage": LARGE_PAGE_SIZE,
            },
        )

    async def get_median_transcript_expression(
        self,
        gencode_ids: list[str],
        dataset_id: Optional[str] = None,
        tissue_ids: Optional[list[str]] = None,
    ) -> ApiResult:
        return await self._get(
            "/expression/medianTranscriptExpression",
            {
                "gencodeId": gencode_ids,
                "datasetId": self._dataset(dataset_id),
                "tissueSiteDetailId": tissue_ids,
                "page": 0,
                "itemsPerPage": LARGE_PAGE_SIZE,
            },
        )

    async def get_top_expressed_genes(
        self,
        tissue_id: str,
        dataset_id: Optional[str] = None,
        filter_mt_gene: bool = True,
        limit: int = 100,
    ) -> ApiResult:
        return await self._get(
            "/expression/topExpressedGene",
            {
                "tissueSiteDetailId": tissue_id,
                "datasetId": self._dataset(dataset_id),
                "filterMtGene": filter_mt_gene,
                "page": 0,
                "itemsPerPage": limit,
            },
        )

    async def get_expression_pca(
        self,
        tissue_ids: list[str],
        dataset_id: Optional[str] = None,
        sample_ids: Optional[list[str]] = None,
    ) -> ApiResult:
        return await self._get(
            "/expression/expressionPca",
            {
                "tissueSiteDetailId": tissue_ids,
                "datasetId": self._dataset(dataset_id),
                "sampleId": sample_ids,
                "page": 0,
                "itemsPerPage": LARGE_PAGE_SIZE,
            },
        )

    async def get_single_nucleus_expression(
        self,
        gencode_ids: list[str],
        dataset_id: str = SINGLE_NUCLEUS_DATASET_ID,
        tissue_ids: Optional[list[str]] = None,
        exclude_data_array: bool = True,
    ) -> ApiResult:
        return await self._get(
            "/expression/singleNucleusGeneExpression",
            {
                "gencodeId": gencode_ids,
                "datasetId": dataset_id,
                "tissueSiteDetailId": tissue_ids,
                "excludeDataArray": exclude_data_array,
                "page": 0,
                "itemsPerPage": DEFAULT_PAGE_SIZE,
            },
        )

    async def get_single_nucleus_summary(
        self,
        dataset_id: str = SINGLE_NUCLEUS_DATASET_ID,
        tissue_ids: Optional[list[str]] = None,
    ) -> ApiResult:
        return await self._get(
            "/expression/singleNucleusGeneExpressionSummary",
            {
                "datasetId": dataset_id,
                "tissueSiteDetailId": tissue_ids,
                "page": 0,
                "itemsPerPage": DEFAULT_PAGE_SIZE,
            },
        )

    # ========================================================================
    # Association
    # ========================================================================

    async def get_eqtl_genes(
        self,
        tissue_ids: Optional[list[str]] = None,
        dataset_id: Optional[str] = None,
        page: int = DEFAULT_PAGE,
        items_per_page: int = DEFAULT_PAGE_SIZE,
    ) -> ApiResult:
        return await self._get(
            "/association/egene",
            {
                "tissueSiteDetailId": tissue_ids,
                "datasetId": self._dataset(dataset_id),
                "page": page,
                "itemsPerPage": items_per_page,
            },
        )

    async def get_single_tissue_eqtls(
        self,
        gencode_ids: Optional[list[str]] = None,
        variant_ids: Optional[list[str]] = None,
        tissue_ids: Optional[list[str]] = None,
        dataset_id: Optional[str] = None,
        page: int = DEFAULT_PAGE,
        items_per_page: int = DEFAULT_PAGE_SIZE,
    ) -> ApiResult:
        return await self._get(
            "/association/singleTissueEqtl",
            {
                "gencodeId": gencode_ids,
                "variantId": variant_ids,
                "tissueSiteDetailId": tissue_ids,
                "datasetId": self._dataset(dataset_id),
                "page": page,
                "itemsPerPage": items_per_page,
            },
        )

    async def get_multi_tissue_eqtls(
        self,
        gencode_id: str,
        variant_id: Optional[str] = None,
        dataset_id: Optional[str] = None,
    ) -> ApiResult:
        return await self._get(
            "/association/metasoft",
            {
                "gencodeId": gencode_id,
                "variantId": variant_id,
                "datasetId": self._dataset(dataset_id),
                "page": 0,
                "itemsPerPage": DEFAULT_PAGE_SIZE,
            },
        )

    async def calculate_dynamic_eqtl(
        self,
        tissue_id: str,
        gencode_id: str,
        variant_id: str,
        dataset_id: Optional[str] = None,
    ) -> ApiResult:
        """Compute an eQTL on demand; the whole response body is the result."""
        return await self._get(
            "/association/dyneqtl",
            {
                "tissueSiteDetailId": tissue_id,
                "gencodeId": gencode_id,
                "variantId": variant_id,
                "datasetId": self._dataset(dataset_id),
            },
            unwrap=_UNWRAP_BODY,
        )

    async def get_sqtl_genes(
        self,
        tissue_ids: Optional[list[str]] = None,
        dataset_id: Optional[str] = None,
    ) -> ApiResult:
        return await self._get(
            "/association/sgene",
            {
                "tissueSiteDetailId": tissue_ids,
                "datasetId": self._dataset(dataset_id),
                "page": 0,
                "itemsPerPage": DEFAULT_PAGE_SIZE,
            },
        )

    async def get_fine_mapping(
        self,
        gencode_ids: list[str],
        dataset_id: Optional[str] = None,
        variant_id: Optional[str] = None,
        tissue_ids: Optional[list[str]] = None,
    ) -> ApiResult:
        return await self._get(
            "/association/fineMapping",
            {
                "gencodeId": gencode_ids,
                "datasetId": self._dataset(dataset_id),
                "variantId": variant_id,
                "tissueSiteDetailId": tissue_ids,
                "page": 0,
                "itemsPerPage": DEFAULT_PAGE_SIZE,
            },
        )

    # ========================================================================
    # Dataset / Biobank
    # ========================================================================

    async def get_tissue_site_details(self, dataset_id: Optional[str] = None) -> ApiResult:
        return await self._get(
            "/dataset/tissueSiteDetail",
            {
                "datasetId": self._dataset(dataset_id),
                "page": 0,
                "itemsPerPage": TISSUE_PAGE_SIZE,
            },
        )

    async def get_samples(
        self,
        dataset_id: Optional[str] = None,
        sample_ids: Optional[list[str]] = None,
        tissue_sample_ids: Optional[list[str]] = None,
        subject_ids: Optional[list[str]] = None,
        age_brackets: Optional[list[str]] = None,
        sex: Optional[str] = None,
        path_categories: Optional[list[str]] = None,
        tissue_ids: Optional[list[str]] = None,
        page: int = DEFAULT_PAGE,
        items_per_page: int = DEFAULT_PAGE_SIZE,
    ) -> ApiResult:
        return await self._get(
            "/dataset/sample",
            {
                "datasetId": self._dataset(dataset_id),
                "sampleId": sample_ids,
                "tissueSampleId": tissue_sample_ids,
                "subjectId": subject_ids,
                "ageBracket": age_brackets,
                "sex": sex,
                "pathCategory": path_categories,
                "tissueSiteDetailId": tissue_ids,
                "page": page,
                "itemsPerPage": items_per_page,
            },
        )

    async def get_subjects(
        self,
        dataset_id: Optional[str] = None,
        sex: Optional[str] = None,
        age_brackets: Optional[list[str]] = None,
        hardy_scale: Optional[str] = None,
        subject_ids: Optional[list[str]] = None,
        page: int = DEFAULT_PAGE,
        items_per_page: int = DEFAULT_PAGE_SIZE,
    ) -> ApiResult:
        return await self._get(
            "/dataset/subject",
            {
                "datasetId": self._dataset(dataset_id),
                "sex": sex,
                "ageBracket": age_brackets,
                "hardyScale": hardy_scale,
                "subjectId": subject_ids,
                "page": page,
                "itemsPerPage": items_per_page,
            },
        )

    async def get_biobank_samples(
        self,
        material_types: Optional[list[str]] = None,
        tissue_ids: Optional[list[str]] = None,
        path_categories: Optional[list[str]] = None,
        sex: Optional[str] = None,
        age_brackets: Optional[list[str]] = None,
        page: int = DEFAULT_PAGE,
        items_per_page: int = DEFAULT_PAGE_SIZE,
    ) -> ApiResult:
        """Biobank samples; the rows live under ``sample`` rather than ``data``."""
        return await self._get(
            "/biobank/sample",
            {
                "materialType": material_types,
                "tissueSiteDetailId": tissue_ids,
                "pathCategory": path_categories,
                "sex": sex,
                "ageBracket": age_brackets,
                "page": page,
                "itemsPerPage": items_per_page,
            },
            unwrap=_UNWRAP_SAMPLE,
        )
