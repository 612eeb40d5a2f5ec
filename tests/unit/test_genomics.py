"""
Unit tests for the genome coordinate heuristics.
"""

import pytest

from gtex_mcp.constants import GenomeBuild
from gtex_mcp.services.genomics import (
    approximate_offset,
    bin_variant_distances,
    closest_variant,
    convert_position,
    region_type,
    reverse_offset,
)


class TestOffsets:
    """Test the approximate build shift."""

    def test_forward_offset(self):
        """floor(position * 0.0001) plus the chromosome adjustment."""
        assert approximate_offset("chr1", 1_000_000) == 100 + 100
        assert approximate_offset("chr3", 1_000_000) == 100
        assert approximate_offset("chrX", 50_000) == 5 + 200

    def test_reverse_is_negation(self):
        for chromosome in ("chr1", "chr2", "chr17", "chrY"):
            assert reverse_offset(chromosome, 123_456) == -approximate_offset(chromosome, 123_456)

    def test_same_build(self):
        assert convert_position("chr1", 500, GenomeBuild.HG38, GenomeBuild.HG38) == (500, "no conversion")

    def test_hg38_to_hg19(self):
        converted, method = convert_position("chr1", 1_000_000, GenomeBuild.HG38, GenomeBuild.HG19)

        assert converted == 1_000_000 - 200
        assert method == "hg38 to hg19 conversion (approximate)"


class TestRegionType:
    """Test region_type() labels."""

    @pytest.mark.parametrize(
        "chromosome,label",
        [
            ("chr7", "Autosomal chromosome 7"),
            ("chr22", "Autosomal chromosome 22"),
            ("chrX", "X chromosome"),
            ("chrY", "Y chromosome"),
            ("chrM", "Genomic region"),
            ("7", "Genomic region"),
        ],
    )
    def test_labels(self, chromosome, label):
        assert region_type(chromosome) == label


class TestVariantDistances:
    """Test LD proxy binning."""

    def test_bins_cover_all_variants(self):
        variants = [{"pos": p} for p in (1000, 1500, 5000, 30000, 200000)]

        bins = bin_variant_distances(variants, 1000)

        assert bins == {"<1kb": 2, "1-10kb": 1, "10-50kb": 1, "50kb+": 1}
        assert sum(bins.values()) == len(variants)

    def test_empty_bins_present(self):
        assert bin_variant_distances([], 10) == {"<1kb": 0, "1-10kb": 0, "10-50kb": 0, "50kb+": 0}

    def test_closest_variant(self):
        variants = [{"id": "a", "pos": 90}, {"id": "b", "pos": 105}, {"id": "c", "pos": 95}]

        best, distance = closest_variant(variants, 100)

        assert best["id"] == "b"
        assert distance == 5

    def test_closest_variant_first_wins_ties(self):
        variants = [{"id": "a", "pos": 95}, {"id": "b", "pos": 105}]
        best, _ = closest_variant(variants, 100)
        assert best["id"] == "a"

    def test_closest_variant_empty(self):
        with pytest.raises(ValueError):
            closest_variant([], 100)
