"""
Tool dispatch.

Maps a tool name to its parameter model and handler, validates the raw
arguments, runs the handler with the injected client and wraps the
outcome in an MCP ``CallToolResult``.
"""

import logging
from typing import Any, Awaitable, Callable, Optional

import mcp.types as types
from pydantic import BaseModel, ValidationError

from gtex_mcp.clients.gtex_client import GTExClient
from gtex_mcp.schemas import (
    BiobankInput,
    CoordinateInput,
    CorrelationInput,
    DatasetInfoInput,
    DifferentialExpressionInput,
    DynamicEqtlInput,
    EmptyInput,
    EqtlGenesInput,
    ExpressionPcaInput,
    FineMappingInput,
    GeneExpressionInput,
    GeneIdInput,
    GeneInfoInput,
    GeneOntologyInput,
    GeneSearchInput,
    LdStructureInput,
    MedianExpressionInput,
    MultiGeneInput,
    MultiTissueEqtlInput,
    NeighborGenesInput,
    SampleInfoInput,
    SingleNucleusExpressionInput,
    SingleNucleusSummaryInput,
    SingleTissueEqtlInput,
    SqtlInput,
    SubjectInput,
    TissueInfoInput,
    TissueSpecificGenesInput,
    ToolResult,
    TopExpressedGenesInput,
    TranscriptSearchInput,
    VariantIdInput,
    VariantsInput,
)
from gtex_mcp.server.handlers import association, expression, reference
from gtex_mcp.services.formatter import get_formatter
from gtex_mcp.services.validation import (
    ToolValidationError,
    UnknownToolError,
    format_validation_error,
)

logger = logging.getLogger(__name__)

Handler = Callable[[GTExClient, Any], Awaitable[ToolResult]]

# Tool name -> (parameter model, handler)
TOOL_HANDLERS: dict[str, tuple[type[BaseModel], Handler]] = {
    # Expression
    "get_gene_expression": (GeneExpressionInput, expression.get_gene_expression),
    "get_median_gene_expression": (MedianExpressionInput, expression.get_median_gene_expression),
    "get_top_expressed_genes": (TopExpressedGenesInput, expression.get_top_expressed_genes),
    "get_tissue_specific_genes": (TissueSpecificGenesInput, expression.get_tissue_specific_genes),
    "get_clustered_expression": (MultiGeneInput, expression.get_clustered_expression),
    "calculate_expression_correlation": (CorrelationInput, expression.calculate_expression_correlation),
    "get_differential_expression": (DifferentialExpressionInput, expression.get_differential_expression),
    "get_median_transcript_expression": (MedianExpressionInput, expression.get_median_transcript_expression),
    "get_expression_pca": (ExpressionPcaInput, expression.get_expression_pca),
    "get_single_nucleus_expression": (SingleNucleusExpressionInput, expression.get_single_nucleus_expression),
    "get_single_nucleus_summary": (SingleNucleusSummaryInput, expression.get_single_nucleus_summary),
    # Association
    "get_eqtl_genes": (EqtlGenesInput, association.get_eqtl_genes),
    "get_single_tissue_eqtls": (SingleTissueEqtlInput, association.get_single_tissue_eqtls),
    "calculate_dynamic_eqtl": (DynamicEqtlInput, association.calculate_dynamic_eqtl),
    "get_multi_tissue_eqtls": (MultiTissueEqtlInput, association.get_multi_tissue_eqtls),
    "get_sqtl_results": (SqtlInput, association.get_sqtl_results),
    "get_fine_mapping": (FineMappingInput, association.get_fine_mapping),
    "analyze_ld_structure": (LdStructureInput, association.analyze_ld_structure),
    # Reference / dataset
    "search_genes": (GeneSearchInput, reference.search_genes),
    "get_gene_info": (GeneInfoInput, reference.get_gene_info),
    "get_variants": (VariantsInput, reference.get_variants),
    "get_tissue_info": (TissueInfoInput, reference.get_tissue_info),
    "get_sample_info": (SampleInfoInput, reference.get_sample_info),
    "get_subject_phenotypes": (SubjectInput, reference.get_subject_phenotypes),
    "validate_gene_id": (GeneIdInput, reference.validate_gene_id),
    "validate_variant_id": (VariantIdInput, reference.validate_variant_id),
    "get_dataset_info": (DatasetInfoInput, reference.get_dataset_info),
    "search_transcripts": (TranscriptSearchInput, reference.search_transcripts),
    "get_gene_ontology": (GeneOntologyInput, reference.get_gene_ontology),
    "convert_coordinates": (CoordinateInput, reference.convert_coordinates),
    "get_neighbor_genes": (NeighborGenesInput, reference.get_neighbor_genes),
    "get_service_info": (EmptyInput, reference.get_service_info),
    "get_biobank_samples": (BiobankInput, reference.get_biobank_samples),
}


def to_call_tool_result(result: ToolResult) -> types.CallToolResult:
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=result.text)],
        isError=result.is_error,
    )


async def run_tool(
    client: GTExClient, name: str, arguments: Optional[dict[str, Any]]
) -> ToolResult:
    """
    Validate arguments and run one tool.

    Raises:
        UnknownToolError: If name is not registered
        ToolValidationError: If arguments do not fit the tool's model
    """
    entry = TOOL_HANDLERS.get(name)
    if entry is None:
        raise UnknownToolError(name)

    model, handler = entry
    try:
        params = model.model_validate(arguments or {})
    except ValidationError as e:
        raise ToolValidationError(format_validation_error(e, model)) from e

    return await handler(client, params)


async def dispatch(
    client: GTExClient, name: str, arguments: Optional[dict[str, Any]]
) -> types.CallToolResult:
    """
    Route a tool call and convert every outcome into a CallToolResult.

    Args:
        client: Shared GTEx API client
        name: Tool name
        arguments: Raw tool arguments

    Returns:
        CallToolResult; isError is set for unknown tools, invalid input,
        upstream failures and internal faults
    """
    logger.debug(f"Tool call: {name} {arguments}")

    try:
        result = await run_tool(client, name, arguments)

    except UnknownToolError as e:
        logger.warning(str(e))
        result = ToolResult(text=str(e), is_error=True)

    except ToolValidationError as e:
        logger.info(f"Validation error in {name}: {e}")
        result = ToolResult(text=f"Validation error in {name}: {e}", is_error=True)

    except Exception as e:
        logger.error(f"Error executing {name}: {e}", exc_info=True)
        result = ToolResult(text=f"Error executing {name}: {e}", is_error=True)

    text = get_formatter().enforce_limit(result.text)
    return to_call_tool_result(ToolResult(text=text, is_error=result.is_error))
