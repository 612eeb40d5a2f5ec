"""
Reference and Dataset Tools

Gene, transcript and variant lookups, tissue/sample/subject metadata,
identifier validation, GO inference and coordinate conversion.
"""

import logging
from typing import Any

from gtex_mcp.clients.gtex_client import GTExClient
from gtex_mcp.constants import (
    BIOBANK_DETAIL_THRESHOLD,
    LIFTOVER_URL,
    MAX_GENE_INFO_GENES,
    QUOTA_BATCH,
    SAMPLE_DETAIL_THRESHOLD,
    SUBJECT_DETAIL_THRESHOLD,
    Species,
)
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
    ToolResult,
    TranscriptSearchInput,
    VariantIdInput,
    VariantsInput,
)
from gtex_mcp.server.handlers.base import api_error, dataset_of, report, yes_no
from gtex_mcp.services.formatter import display_tissue, paging_note, to_fixed, to_locale, truncate_text
from gtex_mcp.services.genomics import convert_position, region_type
from gtex_mcp.services.grouping import count_by, group_by, numeric
from gtex_mcp.services.ontology import GO_ASPECTS
from gtex_mcp.services.statistics import average_age, percentage
from gtex_mcp.services.validation import ToolValidationError, quota_advisory

logger = logging.getLogger(__name__)


def _span(record: dict[str, Any]) -> str:
    return f"{record.get('chromosome')}:{to_locale(record.get('start'))}-{to_locale(record.get('end'))}"


def _length(record: dict[str, Any]) -> int:
    return int(numeric(record.get("end")) - numeric(record.get("start")) + 1)


def _genome_line(record: dict[str, Any]) -> str:
    return f"Genome: {record.get('genomeBuild')}, GENCODE: {record.get('gencodeVersion')}"


def _rs_id(variant: dict[str, Any]) -> str:
    snp = variant.get("snpId")
    return snp if snp and snp != "nan" else ""


# ============================================================================
# Genes and transcripts
# ============================================================================


async def search_genes(client: GTExClient, params: GeneSearchInput) -> ToolResult:
    result = await client.search_genes(
        query=params.query, page=params.page, items_per_page=params.page_size
    )
    if not result.ok:
        return api_error("genes", result, verb="searching")

    genes = result.records
    if not genes:
        return ToolResult(text=f'No genes found matching query: "{params.query}"')

    lines = [
        f'**Gene Search Results for "{params.query}"**',
        f"Found {len(genes)} genes",
        _genome_line(genes[0]),
    ]
    if params.species != Species.HUMAN:
        lines.append(f"Species: {params.species.value} (GTEx reference data is human)")
    lines.append("")

    for index, gene in enumerate(genes, 1):
        lines += [
            f"{index:>2}. **{gene.get('geneSymbol')}** ({gene.get('gencodeId')})",
            f"    • Location: {_span(gene)} ({gene.get('strand')})",
            f"    • Type: {gene.get('geneType')}",
            f"    • Status: {gene.get('geneStatus')}",
        ]
        if gene.get("description"):
            lines.append(f"    • Description: {truncate_text(gene['description'], 80)}")
        if gene.get("entrezGeneId"):
            lines.append(f"    • Entrez ID: {gene['entrezGeneId']}")
        lines.append(f"    • TSS: {to_locale(gene.get('tss'))}")

    note = paging_note(len(genes), result.paging_info)
    if note:
        lines += ["", note]
    return report(lines)


async def get_gene_info(client: GTExClient, params: GeneInfoInput) -> ToolResult:
    gene_ids = params.gene_ids
    if not gene_ids:
        raise ToolValidationError(
            "gencodeId or geneSymbol parameter is required and must be a non-empty array of gene IDs"
        )
    advisory = quota_advisory(gene_ids, MAX_GENE_INFO_GENES, QUOTA_BATCH)
    if advisory:
        return advisory

    result = await client.get_genes(gene_ids)
    if not result.ok:
        return api_error("gene information", result)

    genes = result.records
    if not genes:
        return ToolResult(text=f"No genes found for the specified IDs: {', '.join(gene_ids)}")

    lines = [f"**Gene Information ({len(genes)} genes)**", _genome_line(genes[0]), ""]
    for index, gene in enumerate(genes, 1):
        lines += [
            f"### {index}. {gene.get('geneSymbol')} ({gene.get('gencodeId')})",
            "**Genomic Location:**",
            f"  • Chromosome: {gene.get('chromosome')}",
            f"  • Position: {to_locale(gene.get('start'))} - {to_locale(gene.get('end'))}",
            f"  • Strand: {gene.get('strand')}",
            f"  • Length: {to_locale(_length(gene))} bp",
            f"  • TSS: {to_locale(gene.get('tss'))}",
            "",
            "**Gene Annotation:**",
            f"  • Type: {gene.get('geneType')}",
            f"  • Status: {gene.get('geneStatus')}",
            f"  • Source: {gene.get('dataSource')}",
        ]
        if gene.get("entrezGeneId"):
            lines.append(f"  • Entrez Gene ID: {gene['entrezGeneId']}")
        if gene.get("description"):
            lines += ["", "**Description:**", gene["description"]]
        lines.append("")

    return report(lines)


async def search_transcripts(client: GTExClient, params: TranscriptSearchInput) -> ToolResult:
    """Transcripts of one gene, ordered by start position."""
    result = await client.get_transcripts(params.gencode_id)
    if not result.ok:
        return api_error("transcripts", result)

    transcripts = result.records
    # Only filter on type when the rows actually carry it
    if params.transcript_type and any("transcriptType" in t for t in transcripts):
        transcripts = [t for t in transcripts if t.get("transcriptType") == params.transcript_type.value]
    if not transcripts:
        suffix = f" (type: {params.transcript_type.value})" if params.transcript_type else ""
        return ToolResult(text=f"No transcripts found for gene: {params.gencode_id}{suffix}")

    ordered = sorted(transcripts, key=lambda t: numeric(t.get("start")))
    lines = [
        f"**Transcripts for {ordered[0].get('geneSymbol')} ({params.gencode_id})**",
        f"Found {len(ordered)} transcripts",
        _genome_line(ordered[0]),
        "",
    ]
    for index, transcript in enumerate(ordered, 1):
        lines += [
            f"{index:>2}. **{transcript.get('transcriptId')}**",
            f"    • Location: {_span(transcript)} ({transcript.get('strand')})",
            f"    • Length: {to_locale(_length(transcript))} bp",
            f"    • Type: {transcript.get('featureType')}",
            f"    • Source: {transcript.get('source')}",
        ]

    lengths = [_length(t) for t in ordered]
    gene_start = min(numeric(t.get("start")) for t in ordered)
    gene_end = max(numeric(t.get("end")) for t in ordered)
    lines += [
        "",
        "**Gene Summary:**",
        f"  • Gene span: {to_locale(int(gene_end - gene_start + 1))} bp",
        f"  • Total transcripts: {len(ordered)}",
        f"  • Average transcript length: {to_locale(round(sum(lengths) / len(lengths)))} bp",
        f"  • Longest transcript: {to_locale(max(lengths))} bp",
        f"  • Shortest transcript: {to_locale(min(lengths))} bp",
    ]
    return report(lines)


async def get_neighbor_genes(client: GTExClient, params: NeighborGenesInput) -> ToolResult:
    window = params.window_size
    result = await client.get_neighbor_genes(params.chromosome, params.position, window)
    if not result.ok:
        return api_error("neighboring genes", result)

    genes = result.records
    if not genes:
        return ToolResult(
            text=(
                f"No genes found near {params.chromosome}:{to_locale(params.position)} "
                f"±{to_locale(window)} bp"
            )
        )

    def distance(gene: dict[str, Any]) -> float:
        center = (numeric(gene.get("start")) + numeric(gene.get("end"))) / 2
        return abs(center - params.position)

    lines = [
        "**Neighboring Genes**",
        f"Region: {params.chromosome}:{to_locale(params.position - window)}-{to_locale(params.position + window)}",
        f"Center: {params.chromosome}:{to_locale(params.position)}",
        f"Window: ±{to_locale(window)} bp",
        f"Found: {len(genes)} genes",
        "",
    ]
    for index, gene in enumerate(sorted(genes, key=distance), 1):
        lines += [
            f"{index:>2}. **{gene.get('geneSymbol')}** ({gene.get('gencodeId')})",
            f"    • Location: {_span(gene)} ({gene.get('strand')})",
            f"    • Distance from query: {to_fixed(distance(gene) / 1000, 1)} kb",
            f"    • Type: {gene.get('geneType')}",
        ]
        if gene.get("description"):
            lines.append(f"    • Description: {truncate_text(gene['description'], 60)}")

    return report(lines)


async def get_gene_ontology(client: GTExClient, params: GeneOntologyInput) -> ToolResult:
    """
    Keyword-inferred GO categories for one gene.

    The GTEx API has no GO data; categories come from the gene's
    description, symbol and biotype, and the report says so.
    """
    result = await client.get_genes([params.gencode_id])
    if not result.ok:
        return api_error("gene information for GO annotation", result)

    genes = result.records
    if not genes:
        return ToolResult(
            text=f"Gene not found: {params.gencode_id}. Please check that this is a valid GENCODE gene ID."
        )

    gene = genes[0]
    lines = [
        "**Gene Ontology Information**",
        f"Gene: **{gene.get('geneSymbol')}** ({gene.get('gencodeId')})",
        f"Location: {_span(gene)}",
        f"Gene Type: {gene.get('geneType')}",
    ]
    if gene.get("description"):
        lines.append(f"Description: {gene['description']}")
    lines += ["", "**Gene Ontology Categories:**"]
    if params.ontology_type:
        lines.append(f"Filtered by: {params.ontology_type.value}")

    for aspect, (title, infer) in GO_ASPECTS.items():
        if params.ontology_type and params.ontology_type != aspect:
            continue
        lines += ["", f"**{title}:**"]
        lines += [f"  {i}. {term}" for i, term in enumerate(infer(gene), 1)]

    lines += [
        "",
        "**Note:** This is a simplified GO annotation based on gene characteristics. "
        "For comprehensive GO annotations, please use dedicated GO databases like AmiGO, "
        "QuickGO, or the Gene Ontology Consortium website.",
    ]
    if gene.get("entrezGeneId"):
        lines += [
            "",
            "**External Resources:**",
            f"• Entrez Gene: https://www.ncbi.nlm.nih.gov/gene/{gene['entrezGeneId']}",
            f"• AmiGO: http://amigo.geneontology.org/amigo/gene_product/UniProtKB:{gene.get('geneSymbol')}",
        ]
    return report(lines)


# ============================================================================
# Variants and coordinates
# ============================================================================


async def get_variants(client: GTExClient, params: VariantsInput) -> ToolResult:
    if params.start > params.end:
        raise ToolValidationError("start must be less than or equal to end")

    result = await client.get_variants(
        snp_id=params.snp_id,
        variant_id=params.variant_id,
        dataset_id=params.dataset_id,
        chromosome=params.chromosome,
        positions=[params.start, params.end],
        page=params.page,
        items_per_page=params.page_size,
    )
    if not result.ok:
        return api_error("variant information", result)

    variants = result.records
    if not variants:
        return ToolResult(text="No variants found matching the specified criteria.")

    lines = [
        f"**Variant Information ({len(variants)} variants)**",
        f"Dataset: {dataset_of(variants, params.dataset_id or client.default_dataset_id)}",
        "",
    ]
    for index, variant in enumerate(variants, 1):
        lines += [
            f"### {index}. {variant.get('variantId')}",
            "**Genomic Information:**",
            f"  • Position: {variant.get('chromosome')}:{to_locale(variant.get('pos'))}",
            f"  • Alleles: {variant.get('ref')} → {variant.get('alt')}",
        ]
        if _rs_id(variant):
            lines.append(f"  • dbSNP ID: {_rs_id(variant)}")
        if variant.get("b37VariantId"):
            lines.append(f"  • GRCh37 ID: {variant['b37VariantId']}")
        lines += ["", "**Population Genetics:**", f"  • MAF ≥1%: {yes_no(variant.get('maf01'))}"]
        if variant.get("shorthand"):
            lines.append(f"  • Shorthand: {variant['shorthand']}")
        lines.append("")

    lines.append(paging_note(len(variants), result.paging_info))
    return report(lines)


async def convert_coordinates(client: GTExClient, params: CoordinateInput) -> ToolResult:
    """Approximate hg19/hg38 position shift; no request is made."""
    chromosome, position = params.chromosome, params.position
    source, target = params.from_build.value, params.to_build.value

    if params.from_build == params.to_build:
        return ToolResult(
            text=f"No conversion needed: {chromosome}:{to_locale(position)} ({source} → {target})"
        )

    converted, method = convert_position(chromosome, position, params.from_build, params.to_build)
    return report([
        "**Genomic Coordinate Conversion**",
        f"Input: {chromosome}:{to_locale(position)} ({source})",
        f"Target: {target}",
        "",
        "**Converted Coordinates:**",
        f"• **{target}**: {chromosome}:{to_locale(converted)}",
        f"• **Offset**: {to_locale(converted - position)} bp",
        "",
        "**Conversion Details:**",
        f"• Method: {method}",
        f"• Chromosome: {chromosome}",
        f"• Region type: {region_type(chromosome)}",
        "",
        "**⚠️ Important Limitations:**",
        "• This is an APPROXIMATE conversion for demonstration purposes",
        "• Real coordinate conversion requires UCSC liftOver tools",
        "• Some positions may not have direct equivalents between builds",
        "• Insertions/deletions between builds can affect accuracy",
        "",
        "**Recommended Tools for Accurate Conversion:**",
        f"• UCSC Genome Browser LiftOver: {LIFTOVER_URL}",
        "• Ensembl Assembly Converter: https://www.ensembl.org/Homo_sapiens/Tools/AssemblyConverter",
        "• NCBI Remap: https://www.ncbi.nlm.nih.gov/genome/tools/remap",
    ])


# ============================================================================
# Identifier validation
# ============================================================================


def _validation_report(kind: str, checked: list[str], valid: list[str], invalid: list[str], note: str) -> ToolResult:
    lines = [f"**{kind} ID Validation Results**", f"Checked: {len(checked)} {kind.lower()} IDs", ""]
    if valid:
        lines.append(f"**✅ Valid {kind} IDs ({len(valid)}):**")
        lines += [f"  • {item}" for item in valid]
    if invalid:
        lines += ["", f"**❌ Invalid {kind} IDs ({len(invalid)}):**"]
        lines += [f"  • {item}" for item in invalid]
        lines += ["", f"**Note:** {note}"]
    return report(lines)


async def validate_gene_id(client: GTExClient, params: GeneIdInput) -> ToolResult:
    """Split ids into found/not found; a match on GENCODE ID or symbol counts."""
    result = await client.get_genes(params.gene_ids)
    if not result.ok:
        return api_error("genes for validation", result)

    known = set()
    for gene in result.records:
        for field in ("gencodeId", "geneSymbol"):
            if gene.get(field):
                known.add(str(gene[field]).lower())

    valid = [gene_id for gene_id in params.gene_ids if gene_id.lower() in known]
    invalid = [gene_id for gene_id in params.gene_ids if gene_id.lower() not in known]
    return _validation_report(
        "Gene",
        params.gene_ids,
        valid,
        invalid,
        "Invalid IDs may be due to incorrect format, obsolete IDs, or typos.",
    )


async def validate_variant_id(client: GTExClient, params: VariantIdInput) -> ToolResult:
    """One lookup per id, in order; a failed lookup marks that id invalid."""
    positions = [params.position] if params.position else None
    valid, invalid = [], []
    for variant_id in params.variant_ids:
        result = await client.get_variants(
            variant_id=variant_id,
            chromosome=params.chromosome,
            positions=positions,
            items_per_page=1,
        )
        if result.ok and result.records:
            valid.append(variant_id)
        else:
            if not result.ok:
                logger.debug(f"Variant lookup for {variant_id} failed: {result.error}")
            invalid.append(variant_id)

    return _validation_report(
        "Variant",
        params.variant_ids,
        valid,
        invalid,
        "Invalid IDs may be due to incorrect format or variants not present in the GTEx dataset.",
    )


# ============================================================================
# Dataset metadata
# ============================================================================


async def get_service_info(client: GTExClient, params: EmptyInput) -> ToolResult:
    result = await client.get_service_info()
    if not result.ok:
        return api_error("service information", result)

    info = result.data
    if not info or not isinstance(info, dict):
        return ToolResult(text="No service information available.")

    lines = [
        "**GTEx Portal API Service Information**",
        "",
        "**Service Details:**",
        f"  • ID: {info.get('id')}",
        f"  • Name: {info.get('name')}",
        f"  • Version: {info.get('version')}",
        f"  • Environment: {info.get('environment')}",
        "",
    ]
    organization = info.get("organization")
    if organization:
        lines += [
            "**Organization:**",
            f"  • Name: {organization.get('name')}",
            f"  • URL: {organization.get('url')}",
            "",
        ]
    lines.append("**Resources:**")
    for label, field in (("Description", "description"), ("Contact", "contactUrl"), ("Documentation", "documentationUrl")):
        if info.get(field):
            lines.append(f"  • {label}: {info[field]}")
    return report(lines)


async def get_dataset_info(client: GTExClient, params: DatasetInfoInput) -> ToolResult:
    result = await client.get_dataset_info(params.dataset_id)
    if not result.ok:
        return api_error("dataset information", result)

    datasets = result.records
    if not datasets:
        return ToolResult(text="No dataset information available.")

    lines = ["**GTEx Dataset Information**", ""]
    for index, dataset in enumerate(datasets, 1):
        if len(datasets) > 1:
            lines.append(f"### Dataset {index}: {dataset.get('datasetId')}")
        lines += [
            "**Basic Information:**",
            f"  • ID: {dataset.get('datasetId')}",
            f"  • Display Name: {dataset.get('displayName')}",
            f"  • Organization: {dataset.get('organization')}",
        ]
        if dataset.get("description"):
            lines.append(f"  • Description: {dataset['description']}")
        if dataset.get("dbgapId"):
            lines.append(f"  • dbGaP ID: {dataset['dbgapId']}")
        lines += [
            "",
            "**Genomic References:**",
            f"  • Genome Build: {dataset.get('genomeBuild')}",
            f"  • GENCODE Version: {dataset.get('gencodeVersion')}",
        ]
        if dataset.get("dbSnpBuild"):
            lines.append(f"  • dbSNP Build: {dataset['dbSnpBuild']}")
        lines += [
            "",
            "**Sample Statistics:**",
            f"  • Total subjects: {to_locale(dataset.get('subjectCount'))}",
            f"  • Total tissues: {dataset.get('tissueCount')}",
            f"  • RNA-seq samples: {to_locale(dataset.get('rnaSeqSampleCount'))}",
            f"  • RNA-seq + genotype samples: {to_locale(dataset.get('rnaSeqAndGenotypeSampleCount'))}",
            "",
            "**QTL Analysis:**",
            f"  • eQTL subjects: {to_locale(dataset.get('eqtlSubjectCount'))}",
            f"  • eQTL tissues: {dataset.get('eqtlTissuesCount')}",
            "",
        ]
    return report(lines)


def _sex_summary(label: str, summary: dict[str, Any]) -> str:
    return (
        f"  • {label}: {summary.get('count')} (age: {summary.get('ageMin')}-{summary.get('ageMax')}, "
        f"mean: {to_fixed(summary.get('ageMean'), 1)})"
    )


def _tissue_detail(tissue: dict[str, Any]) -> list[str]:
    lines = [
        f"### {tissue.get('tissueSiteDetail')}",
        "**Identifiers:**",
        f"  • Tissue ID: {tissue.get('tissueSiteDetailId')}",
        f"  • Abbreviation: {tissue.get('tissueSiteDetailAbbr')}",
        f"  • Sampling Site: {tissue.get('samplingSite')}",
        f"  • Ontology ID: {tissue.get('ontologyId')}",
    ]
    if tissue.get("ontologyIri"):
        lines.append(f"  • Ontology IRI: {tissue['ontologyIri']}")
    lines += [
        "",
        "**Visual Properties:**",
        f"  • Color (hex): {tissue.get('colorHex')}",
        f"  • Color (RGB): {tissue.get('colorRgb')}",
        "",
        "**Data Availability:**",
        f"  • Has eGenes: {yes_no(tissue.get('hasEGenes'))}",
        f"  • Has sGenes: {yes_no(tissue.get('hasSGenes'))}",
        f"  • Mapped in HubMAP: {yes_no(tissue.get('mappedInHubmap'))}",
    ]
    if tissue.get("hasEGenes"):
        lines.append(f"  • eGene count: {to_locale(tissue.get('eGeneCount'))}")
    if tissue.get("hasSGenes"):
        lines.append(f"  • sGene count: {to_locale(tissue.get('sGeneCount'))}")
    lines.append(f"  • Expressed genes: {to_locale(tissue.get('expressedGeneCount'))}")

    for title, field in (("RNA-seq Samples", "rnaSeqSampleSummary"), ("eQTL Samples", "eqtlSampleSummary")):
        summary = tissue.get(field) or {}
        lines += [
            "",
            f"**{title}:**",
            f"  • Total: {summary.get('totalCount')}",
            _sex_summary("Female", summary.get("female") or {}),
            _sex_summary("Male", summary.get("male") or {}),
        ]
    return lines


def _rna_samples(tissue: dict[str, Any]) -> float:
    return numeric((tissue.get("rnaSeqSampleSummary") or {}).get("totalCount"))


async def get_tissue_info(client: GTExClient, params: TissueInfoInput) -> ToolResult:
    """Tissue site details: full view for one tissue, brief list otherwise."""
    result = await client.get_tissue_site_details(params.dataset_id)
    if not result.ok:
        return api_error("tissue information", result)

    tissues = result.records
    if not tissues:
        return ToolResult(text="No tissue information available.")

    lines = [
        "**GTEx Tissue Information**",
        f"Dataset: {dataset_of(tissues, params.dataset_id or client.default_dataset_id)}",
        f"Total tissues: {len(tissues)}",
        "",
    ]

    if params.tissue_ids:
        tissues = [t for t in tissues if t.get("tissueSiteDetailId") in params.tissue_ids]
        if not tissues:
            return ToolResult(text=f"No tissues found matching: {', '.join(params.tissue_ids)}")

    tissues = sorted(tissues, key=lambda t: t.get("tissueSiteDetail") or "")
    if len(tissues) == 1:
        return report(lines + _tissue_detail(tissues[0]))

    for index, tissue in enumerate(tissues, 1):
        egenes = f", {tissue.get('eGeneCount')} eGenes" if tissue.get("hasEGenes") else ""
        sgenes = f", {tissue.get('sGeneCount')} sGenes" if tissue.get("hasSGenes") else ""
        lines += [
            f"{index:>2}. **{tissue.get('tissueSiteDetail')}** ({tissue.get('tissueSiteDetailId')})",
            f"    {int(_rna_samples(tissue))} samples{egenes}{sgenes}",
        ]

    with_egenes = [t for t in tissues if t.get("hasEGenes")]
    with_sgenes = [t for t in tissues if t.get("hasSGenes")]
    lines += [
        "",
        "**Summary:**",
        f"  • Total RNA-seq samples: {to_locale(int(sum(_rna_samples(t) for t in tissues)))}",
        f"  • Total eGenes: {to_locale(int(sum(numeric(t.get('eGeneCount')) for t in with_egenes)))}",
        f"  • Total sGenes: {to_locale(int(sum(numeric(t.get('sGeneCount')) for t in with_sgenes)))}",
        f"  • Tissues with eQTL data: {len(with_egenes)}",
        f"  • Tissues with sQTL data: {len(with_sgenes)}",
    ]
    return report(lines)


# ============================================================================
# Samples and subjects
# ============================================================================


def _sample_detail(index: int, sample: dict[str, Any]) -> list[str]:
    lines = [
        f"### Sample {index}: {sample.get('sampleId')}",
        "**Subject Information:**",
        f"  • Subject ID: {sample.get('subjectId')}",
        f"  • Age bracket: {sample.get('ageBracket')}",
        f"  • Sex: {sample.get('sex')}",
        f"  • Hardy Scale: {sample.get('hardyScale')}",
        "",
        "**Sample Details:**",
        f"  • Tissue sample ID: {sample.get('tissueSampleId')}",
        f"  • Tissue: {sample.get('tissueSiteDetail')} ({sample.get('tissueSiteDetailId')})",
    ]
    if sample.get("aliquotId"):
        lines.append(f"  • Aliquot ID: {sample['aliquotId']}")
    lines.append(f"  • Data type: {sample.get('dataType')}")

    if sample.get("ischemicTime") is not None:
        lines += [
            "",
            "**Sample Quality:**",
            f"  • Ischemic time: {sample['ischemicTime']} min ({sample.get('ischemicTimeGroup')})",
        ]
        if sample.get("rin") is not None:
            lines.append(f"  • RIN: {sample['rin']}")
        if sample.get("autolysisScore"):
            lines.append(f"  • Autolysis score: {sample['autolysisScore']}")

    if sample.get("pathologyNotes"):
        lines += ["", f"**Pathology Notes:** {sample['pathologyNotes']}"]
    lines.append("")
    return lines


def _sample_summary(samples: list[dict[str, Any]]) -> list[str]:
    lines = ["**Sample Summary by Tissue:**"]
    for tissue_id, group in group_by(samples, lambda s: s.get("tissueSiteDetailId")).items():
        sexes = count_by(group, "sex")
        lines += [
            f"  **{display_tissue(tissue_id)}** ({len(group)} samples)",
            f"    • Male: {sexes.get('male', 0)}, Female: {sexes.get('female', 0)}",
        ]
        age = average_age(s.get("ageBracket") for s in group)
        if age is not None:
            lines.append(f"    • Average age: {to_fixed(age, 1)} years")
    return lines


async def get_sample_info(client: GTExClient, params: SampleInfoInput) -> ToolResult:
    result = await client.get_samples(
        dataset_id=params.dataset_id,
        sample_ids=params.sample_ids,
        subject_ids=params.subject_ids,
        age_brackets=params.age_brackets,
        sex=params.sex,
        tissue_ids=params.tissue_ids,
        page=params.page,
        items_per_page=params.page_size,
    )
    if not result.ok:
        return api_error("sample information", result)

    samples = result.records
    if not samples:
        return ToolResult(text="No samples found matching the specified criteria.")

    lines = [
        f"**Sample Information ({len(samples)} samples)**",
        f"Dataset: {dataset_of(samples, params.dataset_id or client.default_dataset_id)}",
        "",
    ]
    if len(samples) <= SAMPLE_DETAIL_THRESHOLD:
        for index, sample in enumerate(samples, 1):
            lines += _sample_detail(index, sample)
    else:
        lines += _sample_summary(samples)

    note = paging_note(len(samples), result.paging_info)
    if note:
        lines += ["", note]
    return report(lines)


def _distribution(title: str, counts: dict[Any, int], total: int, unit: str = "") -> list[str]:
    lines = [f"• **{title}:**"]
    for value, count in counts.items():
        lines.append(f"  - {value}{unit}: {count} subjects ({to_fixed(percentage(count, total), 1)}%)")
    return lines


async def get_subject_phenotypes(client: GTExClient, params: SubjectInput) -> ToolResult:
    result = await client.get_subjects(
        dataset_id=params.dataset_id,
        sex=params.sex,
        age_brackets=params.age_brackets,
        hardy_scale=params.hardy_scale,
        subject_ids=params.subject_ids,
        page=params.page,
        items_per_page=params.page_size,
    )
    if not result.ok:
        return api_error("subject information", result)

    subjects = result.records
    if not subjects:
        return ToolResult(text="No subjects found matching the specified criteria.")

    lines = [
        f"**Subject Information ({len(subjects)} subjects)**",
        f"Dataset: {dataset_of(subjects, params.dataset_id or client.default_dataset_id)}",
        "",
    ]
    if len(subjects) <= SUBJECT_DETAIL_THRESHOLD:
        for index, subject in enumerate(subjects, 1):
            lines += [
                f"{index:>3}. **{subject.get('subjectId')}**",
                f"     • Age: {subject.get('ageBracket')}",
                f"     • Sex: {subject.get('sex')}",
                f"     • Hardy Scale: {subject.get('hardyScale')}",
            ]
    else:
        total = len(subjects)
        lines.append("**Demographics Summary:**")
        lines += _distribution("By Sex", count_by(subjects, "sex"), total)
        lines += _distribution("By Age Bracket", count_by(subjects, "ageBracket"), total, unit=" years")
        lines += _distribution("By Hardy Scale", count_by(subjects, "hardyScale"), total)

    note = paging_note(len(subjects), result.paging_info)
    if note:
        lines += ["", note]
    return report(lines)


async def get_biobank_samples(client: GTExClient, params: BiobankInput) -> ToolResult:
    result = await client.get_biobank_samples(
        material_types=params.material_types,
        tissue_ids=params.tissue_ids,
        sex=params.sex,
        age_brackets=params.age_brackets,
        page=params.page,
        items_per_page=params.page_size,
    )
    if not result.ok:
        return api_error("biobank samples", result)

    samples = result.records
    if not samples:
        return ToolResult(text="No biobank samples found matching the specified criteria.")

    lines = [f"**Biobank Sample Information ({len(samples)} samples)**", "", "**Summary by Material Type:**"]
    for material, group in group_by(samples, lambda s: s.get("materialType")).items():
        available = sum(1 for s in group if s.get("hasExpressionData") or s.get("hasGenotype"))
        lines.append(
            f"• **{material}**: {len(group)} samples ({available} with expression/genotype data)"
        )

    if len(samples) <= BIOBANK_DETAIL_THRESHOLD:
        lines += ["", "**Sample Details:**"]
        for index, sample in enumerate(samples, 1):
            lines += [
                "",
                f"{index}. **{sample.get('sampleId')}**",
                f"   • Subject: {sample.get('subjectId')}",
                f"   • Material: {sample.get('materialType')}",
                f"   • Tissue: {sample.get('tissueSiteDetail')} ({sample.get('tissueSiteDetailId')})",
                f"   • Sex: {sample.get('sex')}, Age: {sample.get('ageBracket')}",
            ]
            if sample.get("rin"):
                lines.append(f"   • RIN: {sample['rin']}")
            if sample.get("concentration"):
                lines.append(f"   • Concentration: {sample['concentration']}")
            lines += [
                f"   • Expression data: {yes_no(sample.get('hasExpressionData'))}",
                f"   • Genotype data: {yes_no(sample.get('hasGenotype'))}",
            ]

    return report(lines)
