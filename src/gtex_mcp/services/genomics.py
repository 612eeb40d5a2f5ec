"""
Genome-coordinate heuristics.

Neither function here is a real algorithm: the build offset is a rough
position-proportional shift (use UCSC liftOver for real conversions) and
the LD summary only bins variants by distance, without r² values.
"""

import math
import re
from typing import Any, Sequence

from gtex_mcp.constants import (
    CHROMOSOME_OFFSET_ADJUSTMENT,
    GenomeBuild,
    OFFSET_POSITION_FACTOR,
)

LD_DISTANCE_BINS = ("<1kb", "1-10kb", "10-50kb", "50kb+")

_LEADING_DIGITS = re.compile(r"^\s*(\d+)")


def approximate_offset(chromosome: str, position: int) -> int:
    """Approximate hg19 → hg38 shift in bp."""
    base = math.floor(position * OFFSET_POSITION_FACTOR)
    return base + CHROMOSOME_OFFSET_ADJUSTMENT.get(chromosome.lower(), 0)


def reverse_offset(chromosome: str, position: int) -> int:
    """Approximate hg38 → hg19 shift: the negation of the forward shift."""
    return -approximate_offset(chromosome, position)


def convert_position(
    chromosome: str, position: int, from_build: GenomeBuild, to_build: GenomeBuild
) -> tuple[int, str]:
    """
    Approximately convert a position between builds.

    Returns:
        (converted position, method label)
    """
    if from_build == to_build:
        return position, "no conversion"
    if from_build == GenomeBuild.HG19:
        offset = approximate_offset(chromosome, position)
    else:
        offset = reverse_offset(chromosome, position)
    method = f"{from_build.value} to {to_build.value} conversion (approximate)"
    return position + offset, method


def region_type(chromosome: str) -> str:
    name = chromosome.lower()
    if name == "chry":
        return "Y chromosome"
    if name == "chrx":
        return "X chromosome"
    if "chr" in name:
        match = _LEADING_DIGITS.match(name.replace("chr", "", 1))
        if match and 1 <= int(match.group(1)) <= 22:
            return f"Autosomal chromosome {int(match.group(1))}"
    return "Genomic region"


def distance_bin(distance: int) -> str:
    if distance < 1000:
        return LD_DISTANCE_BINS[0]
    if distance < 10000:
        return LD_DISTANCE_BINS[1]
    if distance < 50000:
        return LD_DISTANCE_BINS[2]
    return LD_DISTANCE_BINS[3]


def bin_variant_distances(variants: Sequence[dict[str, Any]], position: int) -> dict[str, int]:
    """Count variants per distance bin; every bin is present, in fixed order."""
    counts = {name: 0 for name in LD_DISTANCE_BINS}
    for variant in variants:
        counts[distance_bin(abs(variant["pos"] - position))] += 1
    return counts


def closest_variant(variants: Sequence[dict[str, Any]], position: int) -> tuple[dict[str, Any], int]:
    """
    Variant nearest to position; the first one wins ties.

    Raises:
        ValueError: If variants is empty
    """
    if not variants:
        raise ValueError("No variants to search")
    best = variants[0]
    best_distance = abs(best["pos"] - position)
    for variant in variants[1:]:
        distance = abs(variant["pos"] - position)
        if distance < best_distance:
            best, best_distance = variant, distance
    return best, best_distance
