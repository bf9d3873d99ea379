"""Unit tests for triage aggregation helpers."""

import pytest

from nzbscout.core.triage import (
    build_title_decision_map,
    decisions_match_statuses,
    prioritize_candidates,
    status_rank,
)
from nzbscout.models.result import NzbResult
from nzbscout.models.triage import TriageDecision, TriageStatus, download_url_key


class TestStatusRank:
    """Test triage status priorities."""

    @pytest.mark.parametrize(
        "status,rank",
        [
            ("blocked", 4),
            ("fetch-error", 4),
            ("error", 4),
            ("verified", 3),
            ("unverified", 2),
            ("pending", 1),
            ("skipped", 1),
            ("unknown", 0),
            ("something-else", 0),
            (None, 0),
            (TriageStatus.VERIFIED, 3),
        ],
    )
    def test_ranks(self, status, rank):
        assert status_rank(status) == rank


class TestBuildTitleDecisionMap:
    """Test per-title decision merging."""

    def test_pending_is_ignored(self):
        """A verified decision wins over a pending one for the same title."""
        decisions = {
            "https://a": TriageDecision(status="pending", normalized_title="movie 2020"),
            "https://b": TriageDecision(status="verified", normalized_title="movie 2020"),
        }

        title_map = build_title_decision_map(decisions)

        assert list(title_map) == ["movie 2020"]
        assert title_map["movie 2020"].status == "verified"
        assert title_map["movie 2020"].source_download_url == "https://b"

    def test_higher_rank_replaces(self):
        """Blocked (4) replaces verified (3)."""
        decisions = {
            "https://a": TriageDecision(status="verified", normalized_title="movie"),
            "https://b": TriageDecision(
                status="blocked", normalized_title="movie", blockers=["password"]
            ),
        }

        entry = build_title_decision_map(decisions)["movie"]

        assert entry.status == "blocked"
        assert entry.blockers == ["password"]
        assert entry.source_download_url == "https://b"

    def test_lower_rank_does_not_replace(self):
        decisions = {
            "https://a": TriageDecision(status="blocked", normalized_title="movie"),
            "https://b": TriageDecision(status="verified", normalized_title="movie"),
        }

        assert build_title_decision_map(decisions)["movie"].status == "blocked"

    def test_equal_rank_last_wins(self):
        decisions = {
            "https://a": TriageDecision(status="error", normalized_title="movie"),
            "https://b": TriageDecision(status="fetch-error", normalized_title="movie"),
        }

        entry = build_title_decision_map(decisions)["movie"]

        assert entry.status == "fetch-error"
        assert entry.source_download_url == "https://b"

    def test_title_is_normalized_when_missing(self):
        decisions = {
            "https://a": {"status": "unverified", "title": "Movie.2020.1080p", "fileCount": 3},
        }

        entry = build_title_decision_map(decisions)["movie 2020 1080p"]

        assert entry.status == "unverified"
        assert entry.file_count == 3
        assert entry.title == "Movie.2020.1080p"

    def test_skips_incomplete_decisions(self):
        decisions = {
            "https://a": None,
            "https://b": {"title": "No Status"},
            "https://c": {"status": "skipped", "title": "Skipped"},
            "https://d": {"status": "verified"},
        }

        assert build_title_decision_map(decisions) == {}

    def test_copies_lists(self):
        blockers = ["missing-articles"]
        decisions = {"u": TriageDecision(status="blocked", normalized_title="t", blockers=blockers)}

        entry = build_title_decision_map(decisions)["t"]
        entry.blockers.append("other")

        assert blockers == ["missing-articles"]

    def test_non_mapping_input(self):
        assert build_title_decision_map(None) == {}
        assert build_title_decision_map([("u", {"status": "verified"})]) == {}


class TestPrioritizeCandidates:
    """Test triage candidate selection."""

    def test_dedups_by_normalized_title(self):
        results = [NzbResult(title="Foo"), NzbResult(title="foo"), NzbResult(title="Bar")]

        selected = prioritize_candidates(results, 2)

        assert [r.title for r in selected] == ["Foo", "Bar"]

    def test_prefers_annotated_normalized_title(self):
        results = [
            NzbResult(title="A", normalized_title="same"),
            NzbResult(title="B", normalized_title="same"),
        ]

        assert prioritize_candidates(results, 5) == [results[0]]

    def test_falls_back_to_download_url(self):
        results = [
            NzbResult(download_url="https://a"),
            NzbResult(download_url="https://a"),
            NzbResult(download_url="https://b"),
        ]

        selected = prioritize_candidates(results, 5)

        assert [r.download_url for r in selected] == ["https://a", "https://b"]

    @pytest.mark.parametrize("limit", [0, -3])
    def test_returns_at_least_one(self, limit):
        results = [NzbResult(title="Foo"), NzbResult(title="Bar")]

        assert prioritize_candidates(results, limit) == [results[0]]

    def test_skips_missing_entries(self):
        results = [None, {"title": "Foo"}]

        assert prioritize_candidates(results, 3) == [{"title": "Foo"}]

    def test_empty_input(self):
        assert prioritize_candidates([], 3) == []
        assert prioritize_candidates(None, 3) == []

    def test_infinite_limit_keeps_all_titles(self):
        results = [{"title": "A"}, {"title": "B"}, {"title": "C"}]

        assert prioritize_candidates(results, float("inf")) == results
        assert prioritize_candidates(results, float("nan")) == results

    def test_fractional_limit_rounds_up(self):
        results = [{"title": "A"}, {"title": "B"}, {"title": "C"}, {"title": "D"}]

        selected = prioritize_candidates(results, 2.5)

        assert [r["title"] for r in selected] == ["A", "B", "C"]

    @pytest.mark.parametrize("limit", [None, "many", True, [2]])
    def test_non_numeric_limit_selects_one(self, limit):
        results = [{"title": "A"}, {"title": "B"}]

        assert prioritize_candidates(results, limit) == [{"title": "A"}]

    def test_numeric_string_limit(self):
        results = [{"title": "A"}, {"title": "B"}, {"title": "C"}]

        assert len(prioritize_candidates(results, "2")) == 2


class TestDecisionsMatchStatuses:
    """Test the all-candidates-resolved guard."""

    @pytest.fixture
    def candidates(self):
        return [NzbResult(download_url="https://a"), NzbResult(download_url="https://b")]

    def test_all_allowed(self, candidates):
        decision_map = {
            "https://a": TriageDecision(status="verified"),
            "https://b": TriageDecision(status="blocked"),
        }

        assert decisions_match_statuses(decision_map, candidates, {"verified", "blocked"})

    def test_disallowed_status(self, candidates):
        decision_map = {
            "https://a": TriageDecision(status="verified"),
            "https://b": TriageDecision(status="pending"),
        }

        assert not decisions_match_statuses(decision_map, candidates, {"verified"})

    def test_missing_decision(self, candidates):
        decision_map = {"https://a": TriageDecision(status="verified")}

        assert not decisions_match_statuses(decision_map, candidates, {"verified"})

    def test_accepts_enum_statuses(self, candidates):
        decision_map = {
            "https://a": {"status": "verified"},
            "https://b": {"status": "unverified"},
        }

        assert decisions_match_statuses(
            decision_map, candidates, [TriageStatus.VERIFIED, TriageStatus.UNVERIFIED]
        )

    def test_empty_inputs(self, candidates):
        assert not decisions_match_statuses({}, candidates, {"verified"})
        assert not decisions_match_statuses({"https://a": {"status": "verified"}}, [], {"verified"})
        assert not decisions_match_statuses(None, candidates, {"verified"})

    def test_non_mapping_decision_map(self, candidates):
        decision_map = [("https://a", {"status": "verified"})]

        assert not decisions_match_statuses(decision_map, candidates, {"verified"})

    @pytest.mark.parametrize("bad_candidates", [5, "https://a", {"downloadUrl": "https://a"}])
    def test_non_iterable_candidates(self, bad_candidates):
        decision_map = {"https://a": {"status": "verified"}}

        assert not decisions_match_statuses(decision_map, bad_candidates, {"verified"})

    @pytest.mark.parametrize("allowed", [None, 3, "verified"])
    def test_malformed_allowed_statuses(self, candidates, allowed):
        decision_map = {
            "https://a": {"status": "verified"},
            "https://b": {"status": "verified"},
        }

        assert not decisions_match_statuses(decision_map, candidates, allowed)

    def test_ignores_unhashable_allowed_entries(self, candidates):
        decision_map = {
            "https://a": {"status": "verified"},
            "https://b": {"status": "verified"},
        }

        assert decisions_match_statuses(decision_map, candidates, [{"x": 1}, "verified"])

    def test_padded_keys_match_padded_urls(self):
        decision_map = {" u ": {"status": "verified"}}

        assert decisions_match_statuses(decision_map, [{"downloadUrl": " u "}], {"verified"})

    def test_padded_keys_match_stripped_urls(self):
        decision_map = {" https://a ": TriageDecision(status="verified")}

        assert decisions_match_statuses(
            decision_map, [NzbResult(download_url="https://a")], {"verified"}
        )

    def test_accepts_candidate_tuples(self, candidates):
        decision_map = {
            "https://a": {"status": "verified"},
            "https://b": {"status": "verified"},
        }

        assert decisions_match_statuses(decision_map, tuple(candidates), {"verified"})


class TestDownloadUrlKey:
    """Test decision map key validation."""

    def test_strips(self):
        assert download_url_key("  https://a  ") == "https://a"

    @pytest.mark.parametrize("value", [None, "", "   ", 5])
    def test_rejects_invalid(self, value):
        assert download_url_key(value) is None
