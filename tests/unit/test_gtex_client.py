"""
Unit tests for GTExClient.

Uses httpx.MockTransport to test:
- Query serialization (repeated keys, booleans, dropped None values)
- Payload unwrapping (data/paging_info, whole body, sample)
- HTTP status and network error classification
"""

import httpx
import pytest

from gtex_mcp.clients.gtex_client import (
    GTExClient,
    build_query_params,
    format_http_error,
)


class TestBuildQueryParams:
    """Test build_query_params()."""

    def test_lists_become_repeated_keys(self):
        pairs = build_query_params({"tissueSiteDetailId": ["Liver", "Lung"], "page": 0})
        assert pairs == [("tissueSiteDetailId", "Liver"), ("tissueSiteDetailId", "Lung"), ("page", "0")]

    def test_booleans_and_none(self):
        pairs = build_query_params({"filterMtGene": True, "excludeDataArray": False, "sex": None})
        assert pairs == [("filterMtGene", "true"), ("excludeDataArray", "false")]


class TestFormatHttpError:
    """Test status classification."""

    @pytest.mark.parametrize(
        "status,expected",
        [
            (400, "Bad Request: Bad Request. Please check your parameters."),
            (404, "Not Found: The requested resource was not found."),
            (422, "Validation Error: Bad Request. Please check your input parameters."),
            (500, "Server Error: Bad Request. Please try again later."),
            (503, "HTTP 503: Bad Request"),
        ],
    )
    def test_messages(self, status, expected):
        assert format_http_error(status, "Bad Request") == expected


class TestRequests:
    """Test requests against a mock transport."""

    @pytest.mark.asyncio
    async def test_repeated_params_on_the_wire(self, transport_client):
        """Multi-valued parameters are sent as repeated keys."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["params"] = request.url.params
            return httpx.Response(200, json={"data": [], "paging_info": {"totalNumberOfItems": 0}})

        client = transport_client(handler)
        await client.get_median_gene_expression(
            ["ENSG00000012048.20"], tissue_ids=["Liver", "Lung"]
        )

        assert seen["path"] == "/api/v2/expression/medianGeneExpression"
        assert seen["params"].get_list("tissueSiteDetailId") == ["Liver", "Lung"]
        assert seen["params"]["datasetId"] == "gtex_v8"
        assert seen["params"]["itemsPerPage"] == "1000"

    @pytest.mark.asyncio
    async def test_boolean_params(self, transport_client):
        seen = {}

        def handler(request):
            seen["params"] = request.url.params
            return httpx.Response(200, json={"data": []})

        client = transport_client(handler)
        await client.get_top_expressed_genes("Liver", filter_mt_gene=False, limit=20)

        assert seen["params"]["filterMtGene"] == "false"
        assert seen["params"]["itemsPerPage"] == "20"

    @pytest.mark.asyncio
    async def test_data_and_paging_unwrapped(self, transport_client):
        client = transport_client(
            lambda request: httpx.Response(
                200,
                json={
                    "data": [{"gencodeId": "ENSG1"}],
                    "paging_info": {"numberOfPages": 4, "page": 0, "maxItemsPerPage": 1, "totalNumberOfItems": 4},
                },
            )
        )

        result = await client.search_genes("BRCA")

        assert result.ok
        assert result.records == [{"gencodeId": "ENSG1"}]
        assert result.paging_info.total_number_of_items == 4
        assert result.paging_info.number_of_pages == 4

    @pytest.mark.asyncio
    async def test_whole_body_result(self, transport_client):
        """Dynamic eQTL returns the whole body."""
        body = {"gencodeId": "ENSG1", "pValue": 1e-5, "data": [1.0, 2.0]}
        client = transport_client(lambda request: httpx.Response(200, json=body))

        result = await client.calculate_dynamic_eqtl("Liver", "ENSG1", "chr1_1_A_G_b38")

        assert result.data == body

    @pytest.mark.asyncio
    async def test_biobank_sample_key(self, transport_client):
        client = transport_client(
            lambda request: httpx.Response(200, json={"sample": [{"sampleId": "S1"}]})
        )

        result = await client.get_biobank_samples()

        assert result.records == [{"sampleId": "S1"}]

    @pytest.mark.asyncio
    async def test_dataset_info_normalized_to_list(self, transport_client):
        client = transport_client(
            lambda request: httpx.Response(200, json={"datasetId": "gtex_v8", "tissueCount": 54})
        )

        result = await client.get_dataset_info("gtex_v8")

        assert result.data == [{"datasetId": "gtex_v8", "tissueCount": 54}]


class TestErrors:
    """Test that failures become ApiResult errors instead of exceptions."""

    @pytest.mark.asyncio
    async def test_not_found(self, transport_client):
        client = transport_client(lambda request: httpx.Response(404))

        result = await client.get_genes(["NOPE"])

        assert not result.ok
        assert result.status == 404
        assert result.error == "Not Found: The requested resource was not found."
        assert result.records == []

    @pytest.mark.asyncio
    async def test_server_error(self, transport_client):
        client = transport_client(lambda request: httpx.Response(500))

        result = await client.get_service_info()

        assert result.status == 500
        assert result.error.startswith("Server Error: Internal Server Error")

    @pytest.mark.asyncio
    async def test_network_error(self, transport_client):
        """Connection failures carry no status."""

        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = transport_client(handler)

        result = await client.get_tissue_site_details()

        assert result.error == "Network error: Unable to connect to GTEx Portal API."
        assert result.status is None

    @pytest.mark.asyncio
    async def test_timeout_is_network_error(self, transport_client):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client = transport_client(handler)

        result = await client.get_subjects()

        assert result.error.startswith("Network error")

    @pytest.mark.asyncio
    async def test_invalid_json(self, transport_client):
        client = transport_client(lambda request: httpx.Response(200, content=b"<html>"))

        result = await client.get_samples()

        assert result.error.startswith("Request error:")

    @pytest.mark.asyncio
    async def test_malformed_paging_info(self, transport_client):
        body = {"data": [], "paging_info": {"numberOfPages": "many"}}
        client = transport_client(lambda request: httpx.Response(200, json=body))

        result = await client.get_samples()

        assert not result.ok
        assert result.error.startswith("Request error:")
        assert result.data is None


class TestConstruction:
    """Test client construction."""

    def test_from_settings(self):
        from gtex_mcp.config import Settings

        settings = Settings(gtex_api_base="https://example.org/api/v2/", default_dataset_id="gtex_v10")
        client = GTExClient.from_settings(settings)

        assert client.base_url == "https://example.org/api/v2"
        assert client.default_dataset_id == "gtex_v10"
        assert client.client.headers["User-Agent"] == settings.gtex_user_agent
