"""Tests for quality labels and ranking."""

from __future__ import annotations

import pytest

from vendorsweep.core.quality import UNKNOWN_RANK, Quality, is_at_least, rank


class TestRank:
    def test_fixed_order(self):
        assert rank("failed") < rank("ai_only") < rank("partial") < rank("full")
        assert [rank(q) for q in ("failed", "ai_only", "partial", "full")] == [0, 1, 2, 3]

    def test_enum_and_string_agree(self):
        for q in Quality:
            assert rank(q) == rank(q.value)

    @pytest.mark.parametrize("label", ["", "excellent", "FAILED?", None])
    def test_unknown_ranks_below_failed(self, label):
        assert rank(label) == UNKNOWN_RANK
        assert rank(label) < rank("failed")

    def test_label_normalized(self):
        assert rank("  Full ") == rank("full")

    @pytest.mark.parametrize("label", [3, 2.0, True, ["full"], {"q": "full"}])
    def test_non_string_label_is_unknown(self, label):
        assert rank(label) == UNKNOWN_RANK
        assert is_at_least("failed", label)


class TestIsAtLeast:
    def test_missing_existing_always_overwritable(self):
        assert is_at_least("failed", None)

    def test_equal_rank_overwrites(self):
        assert is_at_least("partial", "partial")

    def test_lower_rank_does_not_overwrite(self):
        assert not is_at_least("ai_only", "partial")

    def test_anything_beats_unknown(self):
        assert is_at_least("failed", "mystery")
