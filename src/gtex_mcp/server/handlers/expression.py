"""
Expression Analysis Tools

Bulk RNA-seq (sample-level and median), transcript, PCA and single
nucleus expression reports, plus the derived clustering, correlation and
differential summaries.
"""

import logging
from typing import Any

from gtex_mcp.clients.gtex_client import GTExClient
from gtex_mcp.constants import (
    MAX_CLUSTERING_GENES,
    MAX_CORRELATION_GENES,
    MAX_EXPRESSION_GENES,
    QUOTA_BATCH,
    QUOTA_CLUSTERING,
    QUOTA_CORRELATION,
    TISSUE_SPECIFIC_FETCH,
    TOP_PCA_SAMPLES,
    TOP_TISSUE_SPECIFIC,
    TOP_TISSUES,
    TOP_TRANSCRIPT_TISSUES,
    TOP_TRANSCRIPTS,
    SortBy,
    SortDirection,
)
from gtex_mcp.schemas import (
    CorrelationInput,
    DifferentialExpressionInput,
    ExpressionPcaInput,
    GeneExpressionInput,
    MedianExpressionInput,
    MultiGeneInput,
    SingleNucleusExpressionInput,
    SingleNucleusSummaryInput,
    TissueSpecificGenesInput,
    ToolResult,
    TopExpressedGenesInput,
)
from gtex_mcp.server.handlers.base import api_error, dataset_of, report
from gtex_mcp.services.formatter import (
    display_tissue,
    gene_key,
    paging_note,
    to_fixed,
    to_locale,
)
from gtex_mcp.services.grouping import (
    group_by,
    match_tissue_group,
    numeric,
    rank,
    render_grouped_report,
    render_ranked,
)
from gtex_mcp.services.statistics import (
    basic_stats,
    correlation_strength,
    expression_stats,
    fold_change,
    log2_fold_change,
    pearson_correlation,
    percentage,
)
from gtex_mcp.services.validation import quota_advisory

logger = logging.getLogger(__name__)


def _unit(record: dict[str, Any]) -> str:
    return record.get("unit") or "TPM"


def _median(record: dict[str, Any]) -> float:
    return numeric(record.get("median"))


# ============================================================================
# Sample-level and median expression
# ============================================================================


def _render_sample_expression(_index: int, expr: dict[str, Any]) -> str:
    unit = _unit(expr)
    values = expr.get("data") or []
    stats = expression_stats(values)
    subset = f" ({expr['subsetGroup']})" if expr.get("subsetGroup") else ""
    return (
        f"**{display_tissue(expr.get('tissueSiteDetailId'))}**{subset}:\n"
        f"  • Samples: {len(values)}\n"
        f"  • Mean: {to_fixed(stats.mean)} {unit}\n"
        f"  • Median: {to_fixed(stats.median)} {unit}\n"
        f"  • Range: {to_fixed(stats.min)} - {to_fixed(stats.max)} {unit}\n"
        f"  • Non-zero samples: {stats.non_zero_count} ({to_fixed(stats.non_zero_percent, 1)}%)\n"
    )


async def get_gene_expression(client: GTExClient, params: GeneExpressionInput) -> ToolResult:
    """Sample-level expression per gene and tissue, summarized with statistics."""
    advisory = quota_advisory(params.gencode_ids, MAX_EXPRESSION_GENES, QUOTA_BATCH)
    if advisory:
        return advisory

    result = await client.get_gene_expression(
        gencode_ids=params.gencode_ids,
        dataset_id=params.dataset_id,
        tissue_ids=params.tissue_ids,
        attribute_subset=params.attribute_subset,
        page=params.page,
        items_per_page=params.page_size,
    )
    if not result.ok:
        return api_error("gene expression data", result)

    expressions = result.records
    if not expressions:
        text = "No gene expression data found for the specified genes and tissues."
        if params.tissue_ids:
            text += f" Check that tissue IDs are valid: {', '.join(params.tissue_ids)}"
        return ToolResult(text=text)

    lines = [
        f"**Gene Expression Data ({len(expressions)} results)**",
        f"Dataset: {dataset_of(expressions, params.dataset_id or client.default_dataset_id)}",
    ]
    if params.attribute_subset:
        lines.append(f"Subset by: {params.attribute_subset}")
    lines.append("")

    lines += render_grouped_report(
        expressions,
        key=gene_key,
        header=lambda key, _group: f"### {key}",
        render_item=_render_sample_expression,
    )
    lines.append(paging_note(len(expressions), result.paging_info))
    return report(lines)


def _median_summary(_key: str, group: list[dict[str, Any]]) -> list[str]:
    medians = [_median(e) for e in group]
    stats = basic_stats(medians)
    unit = _unit(max(group, key=_median))
    detected = sum(1 for m in medians if m > 0)
    return [
        "",
        "**Expression Summary:**",
        f"  • Tissues analyzed: {len(group)}",
        f"  • Highest expression: {to_fixed(stats.max)} {unit}",
        f"  • Mean expression: {to_fixed(stats.mean)} {unit}",
        f"  • Tissues with detectable expression: {detected}",
        "",
    ]


async def get_median_gene_expression(client: GTExClient, params: MedianExpressionInput) -> ToolResult:
    """Median expression per tissue, top tissues first."""
    advisory = quota_advisory(params.gencode_ids, MAX_EXPRESSION_GENES, QUOTA_BATCH)
    if advisory:
        return advisory

    result = await client.get_median_gene_expression(
        gencode_ids=params.gencode_ids,
        dataset_id=params.dataset_id,
        tissue_ids=params.tissue_ids,
    )
    if not result.ok:
        return api_error("median gene expression", result)

    expressions = result.records
    if not expressions:
        return ToolResult(text="No median expression data found for the specified genes.")

    lines = [
        f"**Median Gene Expression ({len(expressions)} tissue-gene combinations)**",
        f"Dataset: {dataset_of(expressions, params.dataset_id or client.default_dataset_id)}",
        "",
    ]
    lines += render_grouped_report(
        expressions,
        key=gene_key,
        header=lambda key, group: (
            f"### {key}\n**Top {min(TOP_TISSUES, len(group))} expressing tissues:**"
        ),
        render_item=lambda i, e: (
            f"  {i}. **{display_tissue(e.get('tissueSiteDetailId'))}**: "
            f"{to_fixed(e.get('median'))} {_unit(e)}"
        ),
        sort_key=_median,
        descending=True,
        top_n=TOP_TISSUES,
        summarize=_median_summary,
        marker_noun="tissues",
    )
    return report(lines)


async def get_median_transcript_expression(
    client: GTExClient, params: MedianExpressionInput
) -> ToolResult:
    """Median transcript expression: top tissues per gene, top transcripts per tissue."""
    result = await client.get_median_transcript_expression(
        gencode_ids=params.gencode_ids,
        dataset_id=params.dataset_id,
        tissue_ids=params.tissue_ids,
    )
    if not result.ok:
        return api_error("median transcript expression", result)

    expressions = result.records
    if not expressions:
        return ToolResult(text="No median transcript expression data found for the specified genes.")

    lines = [
        f"**Median Transcript Expression ({len(expressions)} results)**",
        f"Dataset: {dataset_of(expressions, params.dataset_id or client.default_dataset_id)}",
        "",
    ]
    for key, gene_rows in group_by(expressions, gene_key).items():
        lines.append(f"### {key}")

        tissues = group_by(gene_rows, lambda e: e.get("tissueSiteDetailId"))
        top_tissues, _ = rank(
            list(tissues.items()),
            sort_key=lambda item: max(_median(t) for t in item[1]),
            descending=True,
            top_n=TOP_TRANSCRIPT_TISSUES,
        )
        lines.append(f"**Top {len(top_tissues)} expressing tissues:**")

        for tissue_id, transcripts in top_tissues:
            lines.append("")
            lines.append(f"**{display_tissue(tissue_id)}** ({len(transcripts)} transcripts):")
            lines += render_ranked(
                transcripts,
                lambda i, t: f"  {i}. {t.get('transcriptId')}: {to_fixed(t.get('median'))} {_unit(t)}",
                sort_key=_median,
                descending=True,
                top_n=TOP_TRANSCRIPTS,
                marker_noun="transcripts",
            )
        lines.append("")

    return report(lines)


# ============================================================================
# Tissue-level gene rankings
# ============================================================================


async def get_top_expressed_genes(client: GTExClient, params: TopExpressedGenesInput) -> ToolResult:
    """Highest-expressed genes in one tissue."""
    result = await client.get_top_expressed_genes(
        tissue_id=params.tissue_id,
        dataset_id=params.dataset_id,
        filter_mt_gene=params.filter_mt_genes,
        limit=params.limit,
    )
    if not result.ok:
        return api_error("top expressed genes", result)

    genes = result.records
    if not genes:
        return ToolResult(text=f"No expression data found for tissue: {params.tissue_id}")

    field = params.sort_by.value
    genes = sorted(
        genes,
        key=lambda g: numeric(g.get(field, g.get("median"))),
        reverse=params.sort_direction == SortDirection.DESC,
    )

    unit = _unit(genes[0])
    lines = [
        f"**Top Expressed Genes in {display_tissue(params.tissue_id)}**",
        f"Dataset: {dataset_of(genes, params.dataset_id or client.default_dataset_id)}",
        f"Mitochondrial genes {'excluded' if params.filter_mt_genes else 'included'}",
    ]
    if params.sort_by != SortBy.MEDIAN or params.sort_direction != SortDirection.DESC:
        lines.append(f"Sorted by {field} ({params.sort_direction.value})")
    lines += [f"Showing top {len(genes)} genes", ""]

    for index, gene in enumerate(genes, 1):
        lines.append(f"{index:>2}. **{gene.get('geneSymbol')}** ({gene.get('gencodeId')})")
        lines.append(f"    Expression: {to_fixed(gene.get('median'))} {_unit(gene)}")

    # Median is the middle element in display order, not a re-sorted median
    values = [_median(g) for g in genes]
    stats = basic_stats(values)
    lines += [
        "",
        "**Expression Statistics:**",
        f"  • Highest: {to_fixed(stats.max)} {unit}",
        f"  • Lowest: {to_fixed(stats.min)} {unit}",
        f"  • Mean: {to_fixed(stats.mean)} {unit}",
        f"  • Median: {to_fixed(values[len(values) // 2])} {unit}",
    ]
    return report(lines)


async def get_tissue_specific_genes(
    client: GTExClient, params: TissueSpecificGenesInput
) -> ToolResult:
    """Candidate tissue-specific genes: the tissue's top expressed genes."""
    result = await client.get_top_expressed_genes(
        tissue_id=params.tissue_id,
        dataset_id=params.dataset_id,
        filter_mt_gene=True,
        limit=TISSUE_SPECIFIC_FETCH,
    )
    if not result.ok:
        return api_error("tissue-specific genes", result)

    genes = result.records
    if not genes:
        return ToolResult(text=f"No expression data found for tissue: {params.tissue_id}")

    tissue_name = display_tissue(params.tissue_id)
    candidates = genes[:TOP_TISSUE_SPECIFIC]

    lines = [
        f"**Tissue-Specific Genes in {tissue_name}**",
        f"Dataset: {dataset_of(genes, params.dataset_id or client.default_dataset_id)}",
        "Analysis: Top expressing genes (tissue specificity analysis)",
        f"Selection criteria: {params.selection_criteria.value}",
        "",
        f"**Candidate Tissue-Specific Genes ({len(candidates)}):**",
    ]
    for index, gene in enumerate(candidates, 1):
        lines.append(f"{index:>2}. **{gene.get('geneSymbol')}** ({gene.get('gencodeId')})")
        lines.append(f"    • Expression: {to_fixed(gene.get('median'))} {_unit(gene)}")
        lines.append(f"    • Rank in tissue: {index}")

    lines += [
        "",
        f"**Note:** This analysis shows highly expressed genes in {tissue_name}. "
        "True tissue specificity requires comparison across all tissues using "
        "advanced statistical methods.",
    ]
    return report(lines)


# ============================================================================
# Multi-gene analyses over median expression
# ============================================================================


async def get_clustered_expression(client: GTExClient, params: MultiGeneInput) -> ToolResult:
    """Per-gene expression ranges suitable as a clustering input matrix."""
    advisory = quota_advisory(params.gencode_ids, MAX_CLUSTERING_GENES, QUOTA_CLUSTERING)
    if advisory:
        return advisory

    result = await client.get_median_gene_expression(
        gencode_ids=params.gencode_ids, dataset_id=params.dataset_id
    )
    if not result.ok:
        return api_error("clustered expression data", result)

    expressions = result.records
    if not expressions:
        return ToolResult(text="No expression data found for clustering analysis.")

    genes = group_by(expressions, gene_key)
    lines = [
        "**Clustered Gene Expression Analysis**",
        f"Genes: {len(genes)}",
        f"Dataset: {dataset_of(expressions, params.dataset_id or client.default_dataset_id)}",
        "Format: Median expression values for clustering",
        "",
        "**Expression Matrix Summary:**",
    ]
    for key, rows in genes.items():
        ordered, _ = rank(rows, sort_key=_median, descending=True)
        stats = basic_stats([_median(r) for r in ordered])
        top = ordered[0]
        lines += [
            f"• **{key}**:",
            f"  - Tissues: {len(ordered)}",
            f"  - Range: {to_fixed(stats.min)} - {to_fixed(stats.max)} TPM",
            f"  - Top tissue: {display_tissue(top.get('tissueSiteDetailId'))} ({to_fixed(top.get('median'))})",
        ]

    lines += [
        "",
        "**Clustering Notes:**",
        "- Expression values are median TPM across samples",
        "- Data suitable for hierarchical clustering or PCA analysis",
        "- Consider log-transformation for clustering algorithms",
    ]
    return report(lines)


async def calculate_expression_correlation(client: GTExClient, params: CorrelationInput) -> ToolResult:
    """Pairwise Pearson correlation of median expression across shared tissues."""
    advisory = quota_advisory(params.gencode_ids, MAX_CORRELATION_GENES, QUOTA_CORRELATION)
    if advisory:
        return advisory

    result = await client.get_median_gene_expression(
        gencode_ids=params.gencode_ids, dataset_id=params.dataset_id
    )
    if not result.ok:
        return api_error("expression correlation", result, verb="calculating")

    expressions = result.records
    if not expressions:
        return ToolResult(text="No expression data found for correlation analysis.")

    # gencodeId -> {tissue: median}, both in first-seen order
    by_gene: dict[str, dict[str, float]] = {}
    symbols: dict[str, str] = {}
    for expr in expressions:
        gene_id = expr.get("gencodeId")
        symbols[gene_id] = expr.get("geneSymbol")
        by_gene.setdefault(gene_id, {})[expr.get("tissueSiteDetailId")] = _median(expr)

    gene_ids = list(by_gene)
    common_tissues = list(by_gene[gene_ids[0]])

    lines = [
        "**Gene Expression Correlation Analysis**",
        f"Genes: {len(gene_ids)}",
        f"Common tissues: {len(common_tissues)}",
        f"Dataset: {dataset_of(expressions, params.dataset_id or client.default_dataset_id)}",
        "",
    ]
    if len(common_tissues) < 5:
        lines += [
            f"⚠️ **Warning**: Only {len(common_tissues)} common tissues found. "
            "Correlation analysis requires more data points for reliability.",
            "",
        ]

    lines.append("**Pairwise Correlations:**")
    for i, first in enumerate(gene_ids):
        for second in gene_ids[i + 1:]:
            x = [by_gene[first][t] for t in common_tissues if t in by_gene[first]]
            y = [by_gene[second][t] for t in common_tissues if t in by_gene[second]]
            label = f"• **{symbols[first]}** vs **{symbols[second]}**"
            if len(x) != len(y) or len(x) < 3:
                lines.append(f"{label}: Insufficient data")
                continue
            r = pearson_correlation(x, y)
            lines.append(f"{label}: r = {to_fixed(r)} ({correlation_strength(r)})")

    lines += [
        "",
        "**Analysis Notes:**",
        "- Correlations calculated using median expression across tissues",
        "- |r| > 0.7: Strong correlation, |r| > 0.4: Moderate correlation",
        f"- Based on {len(common_tissues)} tissue samples",
    ]
    return report(lines)


async def get_differential_expression(
    client: GTExClient, params: DifferentialExpressionInput
) -> ToolResult:
    """Compare mean median expression between keyword-matched tissue groups."""
    result = await client.get_median_gene_expression(
        gencode_ids=[params.gencode_id], dataset_id=params.dataset_id
    )
    if not result.ok:
        return api_error("differential expression data", result)

    expressions = result.records
    if not expressions:
        return ToolResult(text=f"No expression data found for gene: {params.gencode_id}")

    groups = params.comparison_groups
    matched = group_by(
        (e for e in expressions if match_tissue_group(e.get("tissueSiteDetailId") or "", groups)),
        lambda e: match_tissue_group(e.get("tissueSiteDetailId") or "", groups),
    )

    lines = [
        "**Differential Expression Analysis**",
        f"Gene: **{expressions[0].get('geneSymbol')}** ({params.gencode_id})",
        f"Dataset: {dataset_of(expressions, params.dataset_id or client.default_dataset_id)}",
        f"Comparison Groups: {' vs '.join(groups)}",
        "",
    ]

    means: dict[str, float] = {}
    for group, rows in matched.items():
        stats = basic_stats([_median(r) for r in rows])
        means[group] = stats.mean
        tissues = ", ".join(display_tissue(r.get("tissueSiteDetailId")) for r in rows)
        lines += [
            f"**{group} ({len(rows)} tissues)**:",
            f"  • Mean expression: {to_fixed(stats.mean)} TPM",
            f"  • Range: {to_fixed(stats.min)} - {to_fixed(stats.max)} TPM",
            f"  • Tissues: {tissues}",
            "",
        ]
    for group in groups:
        if group not in matched:
            lines += [f"**{group}**: No matching tissues found", ""]

    compared = list(means)
    if len(compared) >= 2:
        lines.append("**Differential Analysis:**")
        for i, first in enumerate(compared):
            for second in compared[i + 1:]:
                ratio = fold_change(means[first], means[second])
                higher = first if ratio > 1 else second
                lines += [
                    f"• **{first} vs {second}**:",
                    f"  - Fold change: {to_fixed(ratio)}x",
                    f"  - Log2(FC): {to_fixed(log2_fold_change(ratio))}",
                    f"  - Direction: Higher in {higher}",
                ]

    lines += [
        "",
        "**Note**: This is a simplified differential analysis using median values. "
        "Proper differential expression requires statistical testing with sample-level data.",
    ]
    return report(lines)


# ============================================================================
# PCA and single nucleus
# ============================================================================


def _pc_line(name: str, values: list[float]) -> str:
    stats = basic_stats(values)
    return (
        f"  • {name}: {to_fixed(stats.min)} to {to_fixed(stats.max)} "
        f"(mean: {to_fixed(stats.mean)})"
    )


async def get_expression_pca(client: GTExClient, params: ExpressionPcaInput) -> ToolResult:
    result = await client.get_expression_pca(
        tissue_ids=params.tissue_ids,
        dataset_id=params.dataset_id,
        sample_ids=params.sample_ids,
    )
    if not result.ok:
        return api_error("expression PCA data", result)

    samples = result.records
    if not samples:
        return ToolResult(
            text=f"No PCA data found for the specified tissues: {', '.join(params.tissue_ids)}"
        )

    tissues = group_by(samples, lambda s: s.get("tissueSiteDetailId"))
    lines = [
        "**Expression PCA Analysis**",
        f"Dataset: {dataset_of(samples, params.dataset_id or client.default_dataset_id)}",
        f"Total samples: {len(samples)}",
        f"Tissues: {len(tissues)}",
        "",
    ]
    for tissue_id, rows in tissues.items():
        lines += [
            f"### {display_tissue(tissue_id)} ({len(rows)} samples)",
            "**Principal Components (ranges):**",
            _pc_line("PC1", [numeric(r.get("pc1")) for r in rows]),
            _pc_line("PC2", [numeric(r.get("pc2")) for r in rows]),
            _pc_line("PC3", [numeric(r.get("pc3")) for r in rows]),
            "",
            "**Sample Examples:**",
        ]
        lines += render_ranked(
            rows,
            lambda i, s: (
                f"  {i}. {s.get('sampleId')}: PC1={to_fixed(s.get('pc1'))}, "
                f"PC2={to_fixed(s.get('pc2'))}, PC3={to_fixed(s.get('pc3'))}"
            ),
            top_n=TOP_PCA_SAMPLES,
            marker_noun="samples",
        )
        lines.append("")

    return report(lines)


def _render_cell_type(index: int, cell: dict[str, Any], unit: str) -> str:
    count = numeric(cell.get("count"))
    detection = percentage(count - numeric(cell.get("numZeros")), count)
    return (
        f"  {index}. **{cell.get('cellType')}** ({cell.get('count')} cells)\n"
        f"     • Mean (all cells): {to_fixed(cell.get('meanWithZeros'))} {unit}\n"
        f"     • Mean (expressing): {to_fixed(cell.get('meanWithoutZeros'))} {unit}\n"
        f"     • Median (expressing): {to_fixed(cell.get('medianWithoutZeros'))} {unit}\n"
        f"     • Detection rate: {to_fixed(detection, 1)}%"
    )


async def get_single_nucleus_expression(
    client: GTExClient, params: SingleNucleusExpressionInput
) -> ToolResult:
    result = await client.get_single_nucleus_expression(
        gencode_ids=params.gencode_ids,
        dataset_id=params.dataset_id,
        tissue_ids=params.tissue_ids,
        exclude_data_array=params.exclude_data_array,
    )
    if not result.ok:
        return api_error("single nucleus expression data", result)

    expressions = result.records
    if not expressions:
        return ToolResult(text="No single nucleus expression data found for the specified genes.")

    lines = [
        "**Single Nucleus RNA-seq Expression**",
        f"Dataset: {dataset_of(expressions, params.dataset_id)}",
        f"Genes: {len(expressions)}",
        "",
    ]
    for expr in expressions:
        unit = _unit(expr)
        lines.append(
            f"### {expr.get('geneSymbol')} ({expr.get('gencodeId')}) - "
            f"{display_tissue(expr.get('tissueSiteDetailId'))}"
        )
        cell_types = expr.get("cellTypes") or []
        if cell_types:
            lines.append(f"**Cell Type Expression ({len(cell_types)} cell types):**")
            lines += render_ranked(
                cell_types,
                lambda i, c: _render_cell_type(i, c, unit),
                sort_key=lambda c: numeric(c.get("meanWithoutZeros")),
                descending=True,
            )
        else:
            lines.append("No cell type data available.")
        lines.append("")

    return report(lines)


async def get_single_nucleus_summary(
    client: GTExClient, params: SingleNucleusSummaryInput
) -> ToolResult:
    result = await client.get_single_nucleus_summary(
        dataset_id=params.dataset_id, tissue_ids=params.tissue_ids
    )
    if not result.ok:
        return api_error("single nucleus summary", result)

    summaries = result.records
    if not summaries:
        return ToolResult(text="No single nucleus summary data found.")

    tissues = group_by(summaries, lambda s: s.get("tissueSiteDetailId"))
    lines = [
        "**Single Nucleus RNA-seq Summary**",
        f"Dataset: {dataset_of(summaries, params.dataset_id)}",
        f"Tissues: {len(tissues)}",
        "",
    ]
    for tissue_id, rows in tissues.items():
        total_cells = sum(numeric(r.get("numCells")) for r in rows)
        lines += [
            f"### {display_tissue(tissue_id)}",
            f"**Total cells:** {to_locale(total_cells)}",
            f"**Cell types:** {len(rows)}",
            "",
            "**Cell Type Distribution:**",
        ]
        lines += render_ranked(
            rows,
            lambda i, r: (
                f"  {i}. **{r.get('cellType')}**: {to_locale(r.get('numCells'))} cells "
                f"({to_fixed(percentage(numeric(r.get('numCells')), total_cells), 1)}%)"
            ),
            sort_key=lambda r: numeric(r.get("numCells")),
            descending=True,
        )
        lines.append("")

    return report(lines)
