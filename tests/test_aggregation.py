"""Tests for candidate merging, ranking and placeholder synthesis."""

from cotrix.discovery.aggregation import (
    collect_candidates,
    merge_candidates,
    rank_candidates,
    select_top_codes,
    synthesize_placeholder_codes,
)
from cotrix.discovery.errors import NavigationTimeoutError
from cotrix.discovery.models import AdapterOutcome, CouponCandidate, parse_discount_percent

PRIORITY = ["coupons_com", "retailmenot", "couponfollow"]


def candidate(code, source="coupons_com", verified=False, discount=0):
    return CouponCandidate(code=code, source=source, verified=verified, discount_percent=discount)


class TestMergeCandidates:
    """Test deduplication."""

    def test_verified_replaces_unverified(self):
        merged = merge_candidates([
            candidate("SAVE10", source="retailmenot", verified=False),
            candidate("SAVE10", source="couponfollow", verified=True),
        ])
        assert len(merged) == 1
        assert merged[0].verified is True
        assert merged[0].source == "couponfollow"

    def test_first_seen_wins_otherwise(self):
        merged = merge_candidates([
            candidate("SAVE10", source="retailmenot", verified=True),
            candidate("SAVE10", source="couponfollow", verified=True),
            candidate("SAVE10", source="coupons_com", verified=False),
        ])
        assert [c.source for c in merged] == ["retailmenot"]

    def test_codes_compare_case_insensitively(self):
        merged = merge_candidates([candidate("save10"), candidate("SAVE10")])
        assert [c.code for c in merged] == ["SAVE10"]


class TestRankCandidates:
    """Test ordering rules."""

    def test_verified_first(self):
        ranked = rank_candidates(
            [candidate("A", discount=50), candidate("B", verified=True, discount=0)],
            source_priority=PRIORITY,
        )
        assert [c.code for c in ranked] == ["B", "A"]

    def test_then_discount_descending(self):
        ranked = rank_candidates(
            [candidate("A", discount=10), candidate("B", discount=25)],
            source_priority=PRIORITY,
        )
        assert [c.code for c in ranked] == ["B", "A"]

    def test_then_source_priority(self):
        ranked = rank_candidates(
            [
                candidate("CF11", source="couponfollow"),
                candidate("RMN11", source="retailmenot"),
                candidate("CC11", source="coupons_com"),
            ],
            source_priority=PRIORITY,
        )
        assert [c.code for c in ranked] == ["CC11", "RMN11", "CF11"]

    def test_unknown_source_ranks_last(self):
        ranked = rank_candidates(
            [candidate("MYST11", source="mystery"), candidate("CF11", source="couponfollow")],
            source_priority=PRIORITY,
        )
        assert [c.code for c in ranked] == ["CF11", "MYST11"]


class TestSelectTopCodes:
    """Test the final projection to bare strings."""

    def test_truncates_to_limit(self):
        codes = select_top_codes(
            [candidate(f"CODE{i}1") for i in range(5)],
            limit=3,
            source_priority=PRIORITY,
        )
        assert codes == ["CODE01", "CODE11", "CODE21"]

    def test_no_duplicates_in_output(self):
        codes = select_top_codes(
            [candidate("SAVE10"), candidate("SAVE10", source="retailmenot"), candidate("NEW20")],
            limit=3,
            source_priority=PRIORITY,
        )
        assert codes == ["SAVE10", "NEW20"]

    def test_empty(self):
        assert select_top_codes([], limit=3) == []


class TestCollectCandidates:
    def test_failed_outcomes_contribute_nothing(self):
        outcomes = [
            AdapterOutcome(source="coupons_com", candidates=[candidate("SAVE10")]),
            AdapterOutcome.failed("retailmenot", NavigationTimeoutError("https://x.test", 30)),
            AdapterOutcome(source="couponfollow"),
        ]
        assert [c.code for c in collect_candidates(outcomes)] == ["SAVE10"]

    def test_outcome_status(self):
        assert AdapterOutcome(source="a", candidates=[candidate("SAVE10")]).status == "success"
        assert AdapterOutcome(source="a").status == "empty"
        assert AdapterOutcome.failed("a", RuntimeError("boom")).status == "error"


class TestPlaceholderCodes:
    """Test last-resort code synthesis."""

    def test_store_code_then_generic(self):
        assert synthesize_placeholder_codes("examplestore", ["WELCOME10", "SAVE15"], limit=3) == [
            "EXAMPLESTORE10",
            "WELCOME10",
            "SAVE15",
        ]

    def test_respects_limit(self):
        assert synthesize_placeholder_codes("nike", ["WELCOME10", "SAVE15"], limit=1) == ["NIKE10"]

    def test_long_store_names_are_truncated(self):
        codes = synthesize_placeholder_codes("superlongstorename", [], limit=3)
        assert codes == ["SUPERLONGSTOR10"]
        assert len(codes[0]) == 15

    def test_hyphens_dropped_from_stem(self):
        assert synthesize_placeholder_codes("under-armour", [], limit=3) == ["UNDERARMOUR10"]

    def test_invalid_generic_codes_skipped(self):
        assert synthesize_placeholder_codes("gap", ["HTML", "no"], limit=3) == ["GAP10"]


class TestCandidateModel:
    def test_code_is_normalized(self):
        assert candidate("  save10 ").code == "SAVE10"

    def test_discount_is_clamped(self):
        assert candidate("SAVE10", discount=250).discount_percent == 100
        assert candidate("SAVE10", discount=-5).discount_percent == 0

    def test_parse_discount_percent(self):
        assert parse_discount_percent("Save 20% on everything") == 20
        assert parse_discount_percent("Up to 15 % off") == 15
        assert parse_discount_percent("Free shipping") == 0
        assert parse_discount_percent(None) == 0
