"""
Association Analysis Tools

eQTL/sQTL reports, meta-analysis, on-demand eQTL calculation, fine
mapping and the variant-density LD proxy.
"""

import logging
from typing import Any

from gtex_mcp.clients.gtex_client import GTExClient
from gtex_mcp.constants import (
    DEFAULT_DATASET_ID,
    LD_VARIANT_PAGE_SIZE,
    NEARBY_VARIANT_DISTANCE,
    TOP_EGENES,
    TOP_EQTLS,
    TOP_FINE_MAP_VARIANTS,
    TOP_NEARBY_VARIANTS,
    TOP_TISSUES,
)
from gtex_mcp.schemas import (
    DynamicEqtlInput,
    EqtlGenesInput,
    FineMappingInput,
    LdStructureInput,
    MultiTissueEqtlInput,
    SingleTissueEqtlInput,
    SqtlInput,
    ToolResult,
)
from gtex_mcp.server.handlers.base import api_error, dataset_of, report, yes_no
from gtex_mcp.services.formatter import (
    display_tissue,
    gene_key,
    paging_note,
    to_exponential,
    to_fixed,
    to_locale,
)
from gtex_mcp.services.genomics import bin_variant_distances, closest_variant
from gtex_mcp.services.grouping import group_by, numeric, rank, render_grouped_report, render_ranked
from gtex_mcp.services.validation import ToolValidationError

logger = logging.getLogger(__name__)

_GENOTYPE_LABELS = {0: "Ref/Ref", 1: "Ref/Alt"}


def _tissue(record: dict[str, Any]) -> Any:
    return record.get("tissueSiteDetailId")


def _q_value(record: dict[str, Any]) -> float:
    return numeric(record.get("qValue"), default=1.0)


def _p_value(record: dict[str, Any]) -> float:
    return numeric(record.get("pValue"), default=1.0)


def _tissue_filter_suffix(tissue_ids) -> str:
    return f" for tissues: {', '.join(tissue_ids)}" if tissue_ids else ""


def _rs_id(variant: dict[str, Any]) -> str:
    snp = variant.get("snpId")
    return snp if snp and snp != "nan" else ""


# ============================================================================
# eGenes and sGenes
# ============================================================================


def _render_egene(index: int, gene: dict[str, Any]) -> str:
    return (
        f"{index:>2}. **{gene.get('geneSymbol')}** ({gene.get('gencodeId')})\n"
        f"    • p-value: {to_exponential(gene.get('pValue'))}\n"
        f"    • q-value: {to_fixed(gene.get('qValue'), 4)}\n"
        f"    • Empirical p-value: {to_exponential(gene.get('empiricalPValue'))}\n"
        f"    • Log2 allelic fold change: {to_fixed(gene.get('log2AllelicFoldChange'))}\n"
        f"    • p-value threshold: {to_exponential(gene.get('pValueThreshold'))}"
    )


def _egene_summary(_tissue_id: str, genes: list[dict[str, Any]]) -> list[str]:
    q_values = [_q_value(g) for g in genes]
    fold_changes = [abs(numeric(g.get("log2AllelicFoldChange"))) for g in genes]
    return [
        "",
        "**Tissue Summary:**",
        f"  • Total eGenes: {len(genes)}",
        f"  • Most significant q-value: {to_exponential(min(q_values))}",
        f"  • Mean |fold change|: {to_fixed(sum(fold_changes) / len(fold_changes))}",
        f"  • Max |fold change|: {to_fixed(max(fold_changes))}",
        "",
    ]


async def get_eqtl_genes(client: GTExClient, params: EqtlGenesInput) -> ToolResult:
    """
    eGenes per tissue, most significant first.

    The region is echoed in the header; the eGene endpoint has no
    coordinate filter, so rows are not restricted to it.
    """
    if params.start > params.end:
        raise ToolValidationError("start must be less than or equal to end")

    result = await client.get_eqtl_genes(
        tissue_ids=params.tissue_ids,
        dataset_id=params.dataset_id,
        page=params.page,
        items_per_page=params.page_size,
    )
    if not result.ok:
        return api_error("eQTL genes", result)

    genes = result.records
    if not genes:
        return ToolResult(text=f"No eQTL genes found{_tissue_filter_suffix(params.tissue_ids)}")

    lines = [
        f"**eQTL Genes ({len(genes)} results)**",
        f"Region: {params.chromosome}:{params.start}-{params.end}",
        f"Dataset: {dataset_of(genes, params.dataset_id or client.default_dataset_id)}",
        f"Tissues: {len(group_by(genes, _tissue))}",
        "",
    ]
    lines += render_grouped_report(
        genes,
        key=_tissue,
        header=lambda tissue_id, group: f"### {display_tissue(tissue_id)} ({len(group)} eGenes)",
        render_item=_render_egene,
        sort_key=_q_value,
        top_n=TOP_EGENES,
        summarize=_egene_summary,
        marker_noun="eGenes",
        marker_indent="    ",
    )
    lines.append(paging_note(len(genes), result.paging_info))
    return report(lines)


def _render_sgene(index: int, gene: dict[str, Any]) -> str:
    return (
        f"{index:>2}. **{gene.get('geneSymbol')}** ({gene.get('gencodeId')})\n"
        f"    • Phenotype: {gene.get('phenotypeId')}\n"
        f"    • p-value: {to_exponential(gene.get('pValue'))}\n"
        f"    • q-value: {to_fixed(gene.get('qValue'), 4)}\n"
        f"    • Empirical p-value: {to_exponential(gene.get('empiricalPValue'))}\n"
        f"    • # Phenotypes tested: {gene.get('nPhenotypes')}\n"
        f"    • p-value threshold: {to_exponential(gene.get('pValueThreshold'))}"
    )


def _sgene_summary(_tissue_id: str, genes: list[dict[str, Any]]) -> list[str]:
    phenotypes = [numeric(g.get("nPhenotypes")) for g in genes]
    return [
        "",
        "**Tissue Summary:**",
        f"  • Total sGenes: {len(genes)}",
        f"  • Most significant q-value: {to_exponential(min(_q_value(g) for g in genes))}",
        f"  • Mean phenotypes per gene: {to_fixed(sum(phenotypes) / len(phenotypes), 1)}",
        "",
    ]


def _same_gene(requested: str, gencode_id: Any) -> bool:
    """Match GENCODE IDs with or without the version suffix."""
    if not gencode_id:
        return False
    return requested == gencode_id or requested.split(".")[0] == str(gencode_id).split(".")[0]


async def get_sqtl_results(client: GTExClient, params: SqtlInput) -> ToolResult:
    """sGenes per tissue, noting whether the requested gene is among them."""
    result = await client.get_sqtl_genes(tissue_ids=params.tissue_ids, dataset_id=params.dataset_id)
    if not result.ok:
        return api_error("sQTL genes", result)

    genes = result.records
    if not genes:
        return ToolResult(text=f"No sQTL genes found{_tissue_filter_suffix(params.tissue_ids)}")

    matches = [g for g in genes if _same_gene(params.gencode_id, g.get("gencodeId"))]
    lines = [
        f"**sQTL Genes ({len(genes)} results)**",
        f"Dataset: {dataset_of(genes, params.dataset_id or client.default_dataset_id)}",
        f"Tissues: {len(group_by(genes, _tissue))}",
    ]
    if matches:
        tissues = ", ".join(display_tissue(_tissue(g)) for g in matches)
        lines.append(f"Requested gene {params.gencode_id} is an sGene in: {tissues}")
    else:
        lines.append(f"Requested gene {params.gencode_id} is not among the sGenes returned.")
    lines.append("")

    lines += render_grouped_report(
        genes,
        key=_tissue,
        header=lambda tissue_id, group: f"### {display_tissue(tissue_id)} ({len(group)} sGenes)",
        render_item=_render_sgene,
        sort_key=_q_value,
        top_n=TOP_EGENES,
        summarize=_sgene_summary,
        marker_noun="sGenes",
        marker_indent="    ",
    )
    lines.append(paging_note(len(genes), result.paging_info))
    return report(lines)


# ============================================================================
# eQTLs
# ============================================================================


async def get_single_tissue_eqtls(client: GTExClient, params: SingleTissueEqtlInput) -> ToolResult:
    result = await client.get_single_tissue_eqtls(
        gencode_ids=params.gencode_ids,
        variant_ids=params.variant_ids,
        tissue_ids=params.tissue_ids,
        dataset_id=params.dataset_id,
        page=params.page,
        items_per_page=params.page_size,
    )
    if not result.ok:
        return api_error("single tissue eQTLs", result)

    eqtls = result.records
    if not eqtls:
        return ToolResult(text="No significant single tissue eQTLs found for the specified parameters.")

    lines = [
        f"**Single Tissue eQTLs ({len(eqtls)} results)**",
        f"Dataset: {dataset_of(eqtls, params.dataset_id or client.default_dataset_id)}",
        "",
    ]

    if len(params.gencode_ids) == 1:
        lines += [f"**Gene:** {gene_key(eqtls[0])}", ""]
        lines += render_grouped_report(
            eqtls,
            key=_tissue,
            header=lambda tissue_id, group: f"### {display_tissue(tissue_id)} ({len(group)} eQTLs)",
            render_item=lambda i, e: (
                f"{i}. **{e.get('snpId')}** ({e.get('variantId')})\n"
                f"   • Position: {e.get('chromosome')}:{to_locale(e.get('pos'))}\n"
                f"   • p-value: {to_exponential(e.get('pValue'))}\n"
                f"   • NES: {to_fixed(e.get('nes'))}"
            ),
            sort_key=_p_value,
            top_n=TOP_EQTLS,
            summarize=lambda _k, _g: [""],
            marker_noun="eQTLs",
            marker_indent="   ",
        )
    else:
        for key, gene_eqtls in group_by(eqtls, gene_key).items():
            lines.append(f"### {key}")
            for tissue_id, tissue_eqtls in group_by(gene_eqtls, _tissue).items():
                best = min(tissue_eqtls, key=_p_value)
                line = (
                    f"  **{display_tissue(tissue_id)}**: {best.get('snpId')} "
                    f"(p={to_exponential(best.get('pValue'))}, NES={to_fixed(best.get('nes'))})"
                )
                if len(tissue_eqtls) > 1:
                    line += f" + {len(tissue_eqtls) - 1} more"
                lines.append(line)
            lines.append("")

    lines.append(paging_note(len(eqtls), result.paging_info))
    return report(lines)


def _render_meta_tissue(tissue_name: str, data: dict[str, Any]) -> str:
    return (
        f"  **{display_tissue(tissue_name)}**:\n"
        f"    • m-value (posterior prob): {to_fixed(data.get('mValue'), 4)}\n"
        f"    • p-value: {to_exponential(data.get('pValue'))}\n"
        f"    • NES: {to_fixed(data.get('nes'))}\n"
        f"    • Standard error: {to_fixed(data.get('se'), 4)}"
    )


async def get_multi_tissue_eqtls(client: GTExClient, params: MultiTissueEqtlInput) -> ToolResult:
    """METASOFT meta-analysis: per-variant tissue m-values and effect sizes."""
    result = await client.get_multi_tissue_eqtls(
        gencode_id=params.gencode_id,
        variant_id=params.variant_id,
        dataset_id=params.dataset_id,
    )
    if not result.ok:
        return api_error("multi-tissue eQTL data", result)

    meta_results = result.records
    if not meta_results:
        return ToolResult(text=f"No multi-tissue eQTL results found for gene: {params.gencode_id}")

    lines = [
        "**Multi-Tissue eQTL Meta-Analysis**",
        f"Gene: {params.gencode_id}",
        f"Dataset: {dataset_of(meta_results, params.dataset_id or client.default_dataset_id)}",
        f"Results: {len(meta_results)} gene-variant combinations",
        "",
    ]
    for index, meta in enumerate(meta_results, 1):
        lines += [
            f"### Result {index}: {meta.get('variantId')}",
            f"**Meta p-value:** {to_exponential(meta.get('metaP'))}",
            f"**Gene:** {meta.get('gencodeId')}",
            "",
        ]

        tissues = list((meta.get("tissues") or {}).items())
        if tissues:
            lines.append("**Tissue-Specific Results:**")
            lines += render_ranked(
                tissues,
                lambda _i, item: _render_meta_tissue(*item),
                sort_key=lambda item: numeric(item[1].get("mValue")),
                descending=True,
                top_n=TOP_TISSUES,
                marker_noun="tissues",
            )

            m_values = [numeric(data.get("mValue")) for _, data in tissues]
            abs_nes = [abs(numeric(data.get("nes"))) for _, data in tissues]
            lines += [
                "",
                "**Summary:**",
                f"  • Tissues analyzed: {len(tissues)}",
                f"  • Tissues with m-value > 0.5: {sum(1 for m in m_values if m > 0.5)}",
                f"  • Max m-value: {to_fixed(max(m_values), 4)}",
                f"  • Mean |NES|: {to_fixed(sum(abs_nes) / len(abs_nes))}",
            ]
        lines.append("")

    return report(lines)


def _genotype_label(genotype: Any) -> str:
    return _GENOTYPE_LABELS.get(int(numeric(genotype)), "Alt/Alt")


async def calculate_dynamic_eqtl(client: GTExClient, params: DynamicEqtlInput) -> ToolResult:
    """On-demand eQTL for one gene, variant and tissue (the first tissue given)."""
    tissue_id = params.tissue_ids[0]
    if len(params.tissue_ids) > 1:
        logger.debug(f"Dynamic eQTL uses first tissue {tissue_id} of {len(params.tissue_ids)}")

    result = await client.calculate_dynamic_eqtl(
        tissue_id=tissue_id,
        gencode_id=params.gencode_id,
        variant_id=params.snp_id,
        dataset_id=params.dataset_id,
    )
    if not result.ok:
        return api_error("dynamic eQTL", result, verb="calculating")

    eqtl = result.data
    if not eqtl or not isinstance(eqtl, dict):
        return ToolResult(text="No dynamic eQTL result returned.")

    lines = [
        "**Dynamic eQTL Calculation**",
        f"Gene: **{eqtl.get('geneSymbol')}** ({eqtl.get('gencodeId')})",
        f"Variant: **{eqtl.get('variantId')}**",
        f"Tissue: **{display_tissue(tissue_id)}**",
        "",
    ]
    if eqtl.get("error"):
        lines += [f"⚠️ **Calculation Error:** Error code {eqtl['error']}", ""]

    p_value = eqtl.get("pValue")
    threshold = eqtl.get("pValueThreshold")
    significant = p_value is not None and threshold is not None and p_value < threshold
    maf = eqtl.get("maf")
    lines += [
        "**Statistical Results:**",
        f"• p-value: {to_exponential(p_value)}",
        f"• Normalized Effect Size (NES): {to_fixed(eqtl.get('nes'), 4)}",
        f"• t-statistic: {to_fixed(eqtl.get('tStatistic'), 4)}",
        f"• Minor Allele Frequency: {to_fixed(None if maf is None else maf * 100, 2)}%",
        f"• p-value threshold: {to_exponential(threshold)}",
        f"• **Significance:** {'✅ Significant' if significant else '❌ Not significant'}",
        "",
    ]

    hom_ref = int(numeric(eqtl.get("homoRefCount")))
    het = int(numeric(eqtl.get("hetCount")))
    hom_alt = int(numeric(eqtl.get("homoAltCount")))
    lines += [
        "**Genotype Distribution:**",
        f"• Homozygous reference: {hom_ref} samples",
        f"• Heterozygous: {het} samples",
        f"• Homozygous alternate: {hom_alt} samples",
        f"• **Total samples:** {hom_ref + het + hom_alt}",
        "",
    ]

    expression = eqtl.get("data") or []
    genotypes = eqtl.get("genotypes") or []
    if expression and len(expression) == len(genotypes):
        by_genotype = group_by(zip(genotypes, expression), lambda pair: int(numeric(pair[0])))
        lines.append("**Expression by Genotype:**")
        for genotype in sorted(by_genotype):
            values = [numeric(value) for _, value in by_genotype[genotype]]
            mean = sum(values) / len(values)
            lines.append(f"• {_genotype_label(genotype)}: {to_fixed(mean)} TPM ({len(values)} samples)")

    return report(lines)


# ============================================================================
# Fine mapping
# ============================================================================


def _render_credible_sets(rows: list[dict[str, Any]]) -> list[str]:
    lines = []
    for set_id, members in group_by(rows, lambda m: m.get("setId")).items():
        set_size = members[0].get("setSize")
        lines.append(f"  **Credible Set {set_id}** ({set_size} variants):")
        lines += render_ranked(
            members,
            lambda i, m: f"    {i}. {m.get('variantId')}: PIP = {to_fixed(m.get('pip'), 4)}",
            sort_key=lambda m: numeric(m.get("pip")),
            descending=True,
            top_n=TOP_FINE_MAP_VARIANTS,
            marker_noun="variants",
            marker_indent="    ",
        )
        total_pip = sum(numeric(m.get("pip")) for m in members)
        lines.append(f"    **Set Summary:** Total PIP = {to_fixed(total_pip, 4)}, Size = {set_size}")
    return lines


async def get_fine_mapping(client: GTExClient, params: FineMappingInput) -> ToolResult:
    """Credible sets grouped by gene, then by (tissue, method), then by set."""
    result = await client.get_fine_mapping(
        gencode_ids=params.gencode_ids,
        dataset_id=params.dataset_id,
        variant_id=params.variant_id,
        tissue_ids=params.tissue_ids,
    )
    if not result.ok:
        return api_error("fine mapping data", result)

    mappings = result.records
    if not mappings:
        return ToolResult(text="No fine mapping results found for the specified genes.")

    genes = group_by(mappings, lambda m: m.get("gencodeId"))
    lines = [
        f"**Fine Mapping Results ({len(mappings)} results)**",
        f"Dataset: {dataset_of(mappings, params.dataset_id or client.default_dataset_id)}",
        f"Genes: {len(genes)}",
        "",
    ]
    for gencode_id, gene_rows in genes.items():
        lines.append(f"### Gene: {gencode_id}")
        # (tissue, method) pairs
        for (tissue_id, method), rows in group_by(
            gene_rows, lambda m: (_tissue(m), m.get("method"))
        ).items():
            lines.append("")
            lines.append(f"**{display_tissue(tissue_id)} - {method}**")
            lines += _render_credible_sets(rows)
        lines.append("")

    lines.append(paging_note(len(mappings), result.paging_info))
    return report(lines)


# ============================================================================
# LD proxy
# ============================================================================


async def analyze_ld_structure(client: GTExClient, params: LdStructureInput) -> ToolResult:
    """
    Variant-density proxy for LD structure around a position.

    No r² values are computed; the report lists variants in the window,
    bins them by distance and says that real LD needs population data.
    """
    window = params.window_size
    low = max(1, params.position - window)
    high = params.position + window

    result = await client.get_variants(
        chromosome=params.chromosome,
        positions=[low, high],
        dataset_id=DEFAULT_DATASET_ID,
        items_per_page=LD_VARIANT_PAGE_SIZE,
    )
    if not result.ok:
        return api_error("variants for LD analysis", result)

    variants = [v for v in result.records if v.get("pos") is not None]
    if not variants:
        return ToolResult(
            text=f"No variants found in region {params.chromosome}:{params.position - window}-{high}"
        )

    closest, distance = closest_variant(variants, params.position)
    lines = [
        "**Linkage Disequilibrium Structure Analysis**",
        f"Query Position: {params.chromosome}:{to_locale(params.position)}",
        f"Analysis Window: ±{to_locale(window)} bp",
        f"Population: {params.population.value}",
        f"Variants Found: {len(variants)}",
        "",
        "**Closest Variant to Query:**",
        f"• **{closest.get('variantId')}**",
        f"  - Position: {params.chromosome}:{to_locale(closest['pos'])}",
        f"  - Distance: {to_locale(distance)} bp",
        f"  - Alleles: {closest.get('ref')} → {closest.get('alt')}",
    ]
    if _rs_id(closest):
        lines.append(f"  - rsID: {_rs_id(closest)}")
    lines += [f"  - MAF ≥1%: {yes_no(closest.get('maf01'))}", "", "**Variant Density by Distance:**"]
    lines += [
        f"• {name}: {count} variants"
        for name, count in bin_variant_distances(variants, params.position).items()
    ]

    common = [
        v for v in variants
        if abs(v["pos"] - params.position) <= NEARBY_VARIANT_DISTANCE and v.get("maf01")
    ]
    nearby, _ = rank(
        common,
        sort_key=lambda v: abs(v["pos"] - params.position),
        top_n=TOP_NEARBY_VARIANTS,
    )
    if nearby:
        lines += ["", "**Nearby Common Variants (MAF ≥1%, within 50kb):**"]
        for index, variant in enumerate(nearby, 1):
            lines += [
                f"{index:>2}. **{variant.get('variantId')}**",
                f"    • Distance: {to_locale(abs(variant['pos'] - params.position))} bp",
                f"    • Alleles: {variant.get('ref')} → {variant.get('alt')}",
            ]
            if _rs_id(variant):
                lines.append(f"    • rsID: {_rs_id(variant)}")

    lines += [
        "",
        "**LD Analysis Notes:**",
        "• This analysis identifies variants in the region for LD structure assessment",
        "• True LD calculations require population genetics data (r² values)",
        "• Consider using 1000 Genomes or gnomAD data for detailed LD analysis",
        "• Variants with MAF ≥1% are generally suitable for LD calculations",
    ]
    return report(lines)
