"""
Unit tests for the reference and dataset tool handlers.
"""

import pytest

from gtex_mcp.schemas import (
    BiobankInput,
    CoordinateInput,
    DatasetInfoInput,
    EmptyInput,
    GeneIdInput,
    GeneInfoInput,
    GeneOntologyInput,
    GeneSearchInput,
    NeighborGenesInput,
    SampleInfoInput,
    SubjectInput,
    TissueInfoInput,
    TranscriptSearchInput,
    VariantIdInput,
    VariantsInput,
)
from gtex_mcp.server.handlers import reference
from gtex_mcp.services.validation import ToolValidationError

TP53 = {
    "gencodeId": "ENSG00000141510.16",
    "geneSymbol": "TP53",
    "chromosome": "chr17",
    "start": 7661779,
    "end": 7687550,
    "strand": "-",
    "tss": 7687550,
    "geneType": "protein_coding",
    "geneStatus": "KNOWN",
    "dataSource": "HAVANA",
    "description": "tumor protein p53, a transcription factor",
    "entrezGeneId": 7157,
    "genomeBuild": "GRCh38/hg38",
    "gencodeVersion": "v26",
}


class TestGeneLookups:
    """Test search_genes, get_gene_info and get_gene_ontology."""

    @pytest.mark.asyncio
    async def test_search(self, mock_client, ok):
        mock_client.search_genes.return_value = ok([TP53], total=3)
        params = GeneSearchInput.model_validate({"query": "TP53"})

        result = await reference.search_genes(mock_client, params)

        assert '**Gene Search Results for "TP53"**' in result.text
        assert "Location: chr17:7,661,779-7,687,550 (-)" in result.text
        assert "Entrez ID: 7157" in result.text
        assert "Showing 1 of 3 total results" in result.text
        assert "Species" not in result.text
        assert mock_client.search_genes.call_args.kwargs["items_per_page"] == 250

    @pytest.mark.asyncio
    async def test_search_non_human(self, mock_client, ok):
        mock_client.search_genes.return_value = ok([TP53])
        params = GeneSearchInput.model_validate({"query": "Trp53", "species": "mouse"})

        result = await reference.search_genes(mock_client, params)

        assert "Species: mouse (GTEx reference data is human)" in result.text

    @pytest.mark.asyncio
    async def test_search_no_hits(self, mock_client, ok):
        mock_client.search_genes.return_value = ok([])
        params = GeneSearchInput.model_validate({"query": "ZZZ"})

        result = await reference.search_genes(mock_client, params)

        assert result.text == 'No genes found matching query: "ZZZ"'

    @pytest.mark.asyncio
    async def test_gene_info(self, mock_client, ok):
        mock_client.get_genes.return_value = ok([TP53])
        params = GeneInfoInput.model_validate({"geneSymbol": "TP53"})

        result = await reference.get_gene_info(mock_client, params)

        assert "### 1. TP53 (ENSG00000141510.16)" in result.text
        assert "Length: 25,772 bp" in result.text
        mock_client.get_genes.assert_called_once_with(["TP53"])

    @pytest.mark.asyncio
    async def test_gene_info_requires_ids(self, mock_client):
        params = GeneInfoInput.model_validate({})

        with pytest.raises(ToolValidationError):
            await reference.get_gene_info(mock_client, params)

    @pytest.mark.asyncio
    async def test_gene_info_quota(self, mock_client):
        params = GeneInfoInput.model_validate({"gencodeId": [f"G{i}" for i in range(51)]})

        result = await reference.get_gene_info(mock_client, params)

        assert result.text.startswith("Maximum 50 genes can be processed at once")
        mock_client.get_genes.assert_not_called()

    @pytest.mark.asyncio
    async def test_gene_ontology_filtered(self, mock_client, ok):
        mock_client.get_genes.return_value = ok([TP53])
        params = GeneOntologyInput.model_validate(
            {"gencodeId": TP53["gencodeId"], "ontologyType": "molecular_function"}
        )

        result = await reference.get_gene_ontology(mock_client, params)

        assert "Filtered by: molecular_function" in result.text
        assert "**Molecular Function:**" in result.text
        assert "**Biological Process:**" not in result.text
        assert "DNA-binding transcription factor activity" in result.text
        assert "https://www.ncbi.nlm.nih.gov/gene/7157" in result.text

    @pytest.mark.asyncio
    async def test_gene_ontology_not_found(self, mock_client, ok):
        mock_client.get_genes.return_value = ok([])
        params = GeneOntologyInput.model_validate({"gencodeId": "ENSG0"})

        result = await reference.get_gene_ontology(mock_client, params)

        assert result.text.startswith("Gene not found: ENSG0.")


class TestTranscriptsAndNeighbors:
    """Test search_transcripts and get_neighbor_genes."""

    @pytest.mark.asyncio
    async def test_transcripts_sorted_by_start(self, mock_client, ok):
        rows = [
            {"transcriptId": "T2", "geneSymbol": "TP53", "chromosome": "chr17", "start": 300, "end": 399},
            {"transcriptId": "T1", "geneSymbol": "TP53", "chromosome": "chr17", "start": 100, "end": 299},
        ]
        mock_client.get_transcripts.return_value = ok(rows)
        params = TranscriptSearchInput.model_validate({"gencodeId": TP53["gencodeId"]})

        result = await reference.search_transcripts(mock_client, params)

        assert result.text.index("**T1**") < result.text.index("**T2**")
        assert "Gene span: 300 bp" in result.text
        assert "Average transcript length: 150 bp" in result.text

    @pytest.mark.asyncio
    async def test_type_filter_ignored_without_field(self, mock_client, ok):
        rows = [{"transcriptId": "T1", "start": 1, "end": 10}]
        mock_client.get_transcripts.return_value = ok(rows)
        params = TranscriptSearchInput.model_validate(
            {"gencodeId": "ENSG1", "transcriptType": "lncRNA"}
        )

        result = await reference.search_transcripts(mock_client, params)

        assert "Found 1 transcripts" in result.text

    @pytest.mark.asyncio
    async def test_type_filter_applied(self, mock_client, ok):
        rows = [{"transcriptId": "T1", "start": 1, "end": 10, "transcriptType": "protein_coding"}]
        mock_client.get_transcripts.return_value = ok(rows)
        params = TranscriptSearchInput.model_validate(
            {"gencodeId": "ENSG1", "transcriptType": "lncRNA"}
        )

        result = await reference.search_transcripts(mock_client, params)

        assert result.text == "No transcripts found for gene: ENSG1 (type: lncRNA)"

    @pytest.mark.asyncio
    async def test_neighbors_by_distance(self, mock_client, ok):
        rows = [
            {"geneSymbol": "FAR", "gencodeId": "E1", "chromosome": "chr1", "start": 900_000, "end": 910_000},
            {"geneSymbol": "NEAR", "gencodeId": "E2", "chromosome": "chr1", "start": 1_000_000, "end": 1_002_000},
        ]
        mock_client.get_neighbor_genes.return_value = ok(rows)
        params = NeighborGenesInput.model_validate({"chr": "chr1", "position": 1_000_000})

        result = await reference.get_neighbor_genes(mock_client, params)

        assert result.text.index("**NEAR**") < result.text.index("**FAR**")
        assert "Distance from query: 1.0 kb" in result.text
        mock_client.get_neighbor_genes.assert_called_once_with("chr1", 1_000_000, 1_000_000)


class TestVariants:
    """Test get_variants, validation and coordinates."""

    @pytest.mark.asyncio
    async def test_variants(self, mock_client, ok):
        rows = [
            {
                "variantId": "chr1_13550_G_A_b38",
                "chromosome": "chr1",
                "pos": 13550,
                "ref": "G",
                "alt": "A",
                "snpId": "rs554008981",
                "b37VariantId": "1_13550_G_A_b37",
                "maf01": False,
            }
        ]
        mock_client.get_variants.return_value = ok(rows)
        params = VariantsInput.model_validate({"chr": "chr1", "start": 13000, "end": 14000})

        result = await reference.get_variants(mock_client, params)

        assert "Position: chr1:13,550" in result.text
        assert "dbSNP ID: rs554008981" in result.text
        assert "MAF ≥1%: No" in result.text
        assert mock_client.get_variants.call_args.kwargs["positions"] == [13000, 14000]

    @pytest.mark.asyncio
    async def test_variants_bad_range(self, mock_client):
        params = VariantsInput.model_validate({"chr": "chr1", "start": 14000, "end": 13000})

        with pytest.raises(ToolValidationError):
            await reference.get_variants(mock_client, params)

    @pytest.mark.asyncio
    async def test_validate_gene_ids(self, mock_client, ok):
        mock_client.get_genes.return_value = ok([TP53])
        params = GeneIdInput.model_validate({"geneId": ["tp53", "NOTAGENE"]})

        result = await reference.validate_gene_id(mock_client, params)

        assert "**✅ Valid Gene IDs (1):**" in result.text
        assert "  • tp53" in result.text
        assert "**❌ Invalid Gene IDs (1):**" in result.text
        assert "  • NOTAGENE" in result.text

    @pytest.mark.asyncio
    async def test_validate_gene_ids_upstream_error(self, mock_client, failed):
        mock_client.get_genes.return_value = failed()
        params = GeneIdInput.model_validate({"geneId": "TP53"})

        result = await reference.validate_gene_id(mock_client, params)

        assert result.is_error

    @pytest.mark.asyncio
    async def test_validate_variant_ids_one_lookup_each(self, mock_client, ok, failed):
        mock_client.get_variants.side_effect = [ok([{"variantId": "v1"}]), ok([]), failed()]
        params = VariantIdInput.model_validate(
            {"variantId": ["v1", "v2", "v3"], "chr": "chr1", "position": 500}
        )

        result = await reference.validate_variant_id(mock_client, params)

        assert mock_client.get_variants.call_count == 3
        first_call = mock_client.get_variants.call_args_list[0].kwargs
        assert first_call == {"variant_id": "v1", "chromosome": "chr1", "positions": [500], "items_per_page": 1}
        assert "**✅ Valid Variant IDs (1):**" in result.text
        assert "**❌ Invalid Variant IDs (2):**" in result.text

    @pytest.mark.asyncio
    async def test_convert_coordinates(self, mock_client):
        params = CoordinateInput.model_validate({"chr": "chr1", "position": 1_000_000})

        result = await reference.convert_coordinates(mock_client, params)

        assert "• **hg19**: chr1:999,800" in result.text
        assert "• **Offset**: -200 bp" in result.text
        assert "Region type: Autosomal chromosome 1" in result.text
        assert "https://genome.ucsc.edu/cgi-bin/hgLiftOver" in result.text

    @pytest.mark.asyncio
    async def test_convert_same_build(self, mock_client):
        params = CoordinateInput.model_validate(
            {"chr": "chr1", "position": 5000, "fromBuild": "hg19", "toBuild": "hg19"}
        )

        result = await reference.convert_coordinates(mock_client, params)

        assert result.text == "No conversion needed: chr1:5,000 (hg19 → hg19)"


class TestMetadata:
    """Test service, dataset, tissue, sample, subject and biobank reports."""

    @pytest.mark.asyncio
    async def test_service_info(self, mock_client, ok):
        mock_client.get_service_info.return_value = ok(
            {
                "id": "org.gtexportal.rest.v2",
                "name": "GTEx Portal V2 API",
                "version": "2.0.0",
                "organization": {"name": "GTEx Project", "url": "https://gtexportal.org"},
                "environment": "prod",
            }
        )

        result = await reference.get_service_info(mock_client, EmptyInput())

        assert "Name: GTEx Portal V2 API" in result.text
        assert "URL: https://gtexportal.org" in result.text

    @pytest.mark.asyncio
    async def test_dataset_info(self, mock_client, ok):
        mock_client.get_dataset_info.return_value = ok(
            [{"datasetId": "gtex_v8", "displayName": "GTEx V8", "subjectCount": 948, "tissueCount": 54}]
        )

        result = await reference.get_dataset_info(mock_client, DatasetInfoInput())

        assert "ID: gtex_v8" in result.text
        assert "Total subjects: 948" in result.text
        assert "### Dataset" not in result.text

    @pytest.mark.asyncio
    async def test_tissue_list_sorted(self, mock_client, ok):
        rows = [
            {"tissueSiteDetail": "Lung", "tissueSiteDetailId": "Lung", "hasEGenes": True, "eGeneCount": 100,
             "rnaSeqSampleSummary": {"totalCount": 500}},
            {"tissueSiteDetail": "Adipose - Subcutaneous", "tissueSiteDetailId": "Adipose_Subcutaneous",
             "hasEGenes": False, "rnaSeqSampleSummary": {"totalCount": 600}},
        ]
        mock_client.get_tissue_site_details.return_value = ok(rows)

        result = await reference.get_tissue_info(mock_client, TissueInfoInput())

        assert result.text.index("Adipose - Subcutaneous") < result.text.index("**Lung**")
        assert "    500 samples, 100 eGenes" in result.text
        assert "Total RNA-seq samples: 1,100" in result.text
        assert "Tissues with eQTL data: 1" in result.text

    @pytest.mark.asyncio
    async def test_tissue_detail(self, mock_client, ok):
        rows = [
            {"tissueSiteDetail": "Lung", "tissueSiteDetailId": "Lung", "hasEGenes": True, "eGeneCount": 100},
            {"tissueSiteDetail": "Liver", "tissueSiteDetailId": "Liver"},
        ]
        mock_client.get_tissue_site_details.return_value = ok(rows)
        params = TissueInfoInput.model_validate({"tissueSiteDetailId": "Lung"})

        result = await reference.get_tissue_info(mock_client, params)

        assert "### Lung" in result.text
        assert "Has eGenes: Yes" in result.text
        assert "eGene count: 100" in result.text

    @pytest.mark.asyncio
    async def test_tissue_filter_no_match(self, mock_client, ok):
        mock_client.get_tissue_site_details.return_value = ok([{"tissueSiteDetailId": "Lung"}])
        params = TissueInfoInput.model_validate({"tissueSiteDetailId": ["Kidney_Medulla"]})

        result = await reference.get_tissue_info(mock_client, params)

        assert result.text == "No tissues found matching: Kidney_Medulla"

    @pytest.mark.asyncio
    async def test_sample_summary_above_threshold(self, mock_client, ok):
        rows = [
            {"sampleId": f"S{i}", "tissueSiteDetailId": "Liver", "sex": "male" if i % 2 else "female", "ageBracket": "60-69"}
            for i in range(21)
        ]
        mock_client.get_samples.return_value = ok(rows)

        result = await reference.get_sample_info(mock_client, SampleInfoInput())

        assert "**Liver** (21 samples)" in result.text
        assert "Male: 10, Female: 11" in result.text
        assert "Average age: 64.5 years" in result.text
        assert mock_client.get_samples.call_args.kwargs["items_per_page"] == 100

    @pytest.mark.asyncio
    async def test_sample_details(self, mock_client, ok):
        rows = [{"sampleId": "GTEX-1-0001", "subjectId": "GTEX-1", "ischemicTime": 120, "ischemicTimeGroup": "<= 0.5 h", "rin": 7.1}]
        mock_client.get_samples.return_value = ok(rows)

        result = await reference.get_sample_info(mock_client, SampleInfoInput())

        assert "### Sample 1: GTEX-1-0001" in result.text
        assert "Ischemic time: 120 min (<= 0.5 h)" in result.text
        assert "RIN: 7.1" in result.text

    @pytest.mark.asyncio
    async def test_subject_distribution(self, mock_client, ok):
        rows = [{"subjectId": f"GTEX-{i}", "sex": "male", "ageBracket": "20-29", "hardyScale": None} for i in range(51)]
        mock_client.get_subjects.return_value = ok(rows)

        result = await reference.get_subject_phenotypes(mock_client, SubjectInput())

        assert "**Demographics Summary:**" in result.text
        assert "  - male: 51 subjects (100.0%)" in result.text
        assert "  - 20-29 years: 51 subjects (100.0%)" in result.text
        assert "  - Unknown: 51 subjects (100.0%)" in result.text

    @pytest.mark.asyncio
    async def test_biobank(self, mock_client, ok):
        rows = [
            {"sampleId": "B1", "materialType": "RNA:Total RNA", "hasExpressionData": True},
            {"sampleId": "B2", "materialType": "RNA:Total RNA"},
            {"sampleId": "B3", "materialType": "DNA:Genomic DNA", "hasGenotype": True},
        ]
        mock_client.get_biobank_samples.return_value = ok(rows)

        result = await reference.get_biobank_samples(mock_client, BiobankInput())

        assert "• **RNA:Total RNA**: 2 samples (1 with expression/genotype data)" in result.text
        assert "**Sample Details:**" in result.text
        assert "Expression data: Yes" in result.text
