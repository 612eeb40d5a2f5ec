"""
Keyword-based Gene Ontology category inference.

The GTEx API carries no GO annotations. These lists are guessed from the
gene description, symbol and biotype, and reports using them must say so.
"""

from typing import Any, Callable

from gtex_mcp.constants import OntologyType


def _text(gene: dict[str, Any]) -> tuple[str, str, bool]:
    description = (gene.get("description") or "").lower()
    symbol = (gene.get("geneSymbol") or "").lower()
    protein_coding = gene.get("geneType") == "protein_coding"
    return description, symbol, protein_coding


def infer_biological_processes(gene: dict[str, Any]) -> list[str]:
    description, symbol, protein_coding = _text(gene)
    processes = ["cellular process", "metabolic process"]

    if "transcription" in description or "tf" in symbol:
        processes += ["transcription, DNA-templated", "regulation of gene expression"]
    if "kinase" in description or "kinase" in symbol:
        processes += ["protein phosphorylation", "signal transduction"]
    if "receptor" in description or "receptor" in symbol:
        processes += ["cell surface receptor signaling pathway", "response to stimulus"]
    if "enzyme" in description or protein_coding:
        processes += ["catalytic activity", "enzyme-mediated process"]
    return processes


def infer_cellular_components(gene: dict[str, Any]) -> list[str]:
    description, symbol, protein_coding = _text(gene)
    components = ["cell", "intracellular"]

    if "membrane" in description or "receptor" in description:
        components += ["plasma membrane", "integral component of membrane"]
    if "nuclear" in description or "transcription" in description:
        components += ["nucleus", "nucleoplasm"]
    if "mitochondrial" in description or symbol.startswith("mt-"):
        components += ["mitochondrion", "mitochondrial matrix"]
    if "cytoplasm" in description or protein_coding:
        components += ["cytoplasm", "cytosol"]
    return components


def infer_molecular_functions(gene: dict[str, Any]) -> list[str]:
    description, symbol, protein_coding = _text(gene)
    functions = ["binding"]

    if "kinase" in description:
        functions += ["protein kinase activity", "ATP binding"]
    if "transcription" in description or "tf" in symbol:
        functions += ["DNA-binding transcription factor activity", "sequence-specific DNA binding"]
    if "receptor" in description:
        functions += ["receptor activity", "ligand binding"]
    if "enzyme" in description and protein_coding:
        functions += ["catalytic activity", "hydrolase activity"]
    if protein_coding:
        functions.append("protein binding")
    return functions


# Aspect -> (section title, inference function), in report order
GO_ASPECTS: dict[OntologyType, tuple[str, Callable[[dict[str, Any]], list[str]]]] = {
    OntologyType.BIOLOGICAL_PROCESS: ("Biological Process", infer_biological_processes),
    OntologyType.CELLULAR_COMPONENT: ("Cellular Component", infer_cellular_components),
    OntologyType.MOLECULAR_FUNCTION: ("Molecular Function", infer_molecular_functions),
}
