"""
Unit tests for the group/sort/truncate report pipeline.
"""

from gtex_mcp.services.grouping import (
    count_by,
    group_by,
    match_tissue_group,
    numeric,
    rank,
    render_grouped_report,
    render_ranked,
)


class TestGroupBy:
    """Test group_by() and count_by()."""

    def test_first_seen_order(self):
        """Groups keep the order their keys first appear in, not sorted order."""
        rows = [{"t": "Lung"}, {"t": "Adipose"}, {"t": "Lung"}, {"t": "Brain"}]

        groups = group_by(rows, lambda r: r["t"])

        assert list(groups) == ["Lung", "Adipose", "Brain"]
        assert len(groups["Lung"]) == 2

    def test_count_by_missing_values(self):
        rows = [{"sex": "male"}, {"sex": None}, {}, {"sex": "male"}]
        assert count_by(rows, "sex") == {"male": 2, "Unknown": 2}


class TestRank:
    """Test rank() and render_ranked()."""

    def test_truncation_count(self):
        shown, remaining = rank([5, 1, 4, 2, 3], sort_key=lambda v: v, descending=True, top_n=3)

        assert shown == [5, 4, 3]
        assert remaining == 2

    def test_stable_ties(self):
        """Equal keys keep upstream order."""
        items = [("a", 1), ("b", 1), ("c", 0)]
        shown, _ = rank(items, sort_key=lambda i: i[1])
        assert [i[0] for i in shown] == ["c", "a", "b"]

    def test_more_marker(self):
        """Twelve tissues with top 10 end in '... and 2 more tissues'."""
        lines = render_ranked(
            list(range(12)),
            lambda i, v: f"{i}. {v}",
            top_n=10,
            marker_noun="tissues",
        )

        assert len(lines) == 11
        assert lines[0] == "1. 0"
        assert lines[-1] == "  ... and 2 more tissues"

    def test_no_marker_when_everything_fits(self):
        lines = render_ranked([1, 2], lambda i, v: str(v), top_n=10)
        assert lines == ["1", "2"]


class TestRenderGroupedReport:
    """Test the full pipeline."""

    def test_summary_sees_whole_group(self):
        rows = [{"g": "A", "v": v} for v in range(5)] + [{"g": "B", "v": 9}]

        lines = render_grouped_report(
            rows,
            key=lambda r: r["g"],
            header=lambda k, group: f"### {k} ({len(group)})",
            render_item=lambda i, r: f"  {i}. {r['v']}",
            sort_key=lambda r: r["v"],
            descending=True,
            top_n=2,
            summarize=lambda k, group: [f"total={sum(r['v'] for r in group)}"],
        )

        assert lines == [
            "### A (5)",
            "  1. 4",
            "  2. 3",
            "  ... and 3 more",
            "total=10",
            "### B (1)",
            "  1. 9",
            "total=9",
        ]


class TestNumeric:
    """Test numeric() sort keys."""

    def test_values(self):
        assert numeric("2.5") == 2.5
        assert numeric(None) == 0.0
        assert numeric("n/a", default=1.0) == 1.0
        assert numeric(float("nan"), default=1.0) == 1.0


class TestMatchTissueGroup:
    """Test keyword tissue grouping."""

    def test_substring_match(self):
        assert match_tissue_group("Brain_Cortex", ["brain", "heart"]) == "brain"
        assert match_tissue_group("Heart_Left_Ventricle", ["brain", "heart"]) == "heart"

    def test_first_group_wins(self):
        assert match_tissue_group("Skin_Sun_Exposed", ["sun", "skin"]) == "sun"

    def test_no_match(self):
        assert match_tissue_group("Liver", ["brain", "heart"]) is None
