"""Tests for the analysis history store."""

import pytest

from healthguard.models.schemas import AnalysisInput, AnalysisResult, Citation, Verdict
from healthguard.services.history_service import AnalysisHistory


def _result(verdict, text="Claim"):
    return AnalysisResult(
        verdict=verdict,
        confidence=0.7,
        reasoning="Reason",
        citations=[Citation(title="World Health Organization", url="https://www.who.int/")],
        input_echo=AnalysisInput(text=text),
        analyzed_at=1
    )


class TestAnalysisHistory:
    """Test AnalysisHistory."""

    def test_newest_first(self):
        """Test that the latest entry is listed first."""
        history = AnalysisHistory(max_entries=5)
        history.record(_result(Verdict.TRUTH, "first"))
        history.record(_result(Verdict.HARMFUL, "second"))

        entries = history.list()

        assert [e.result.input_echo.text for e in entries] == ["second", "first"]

    def test_bounded(self):
        """Test that old entries are dropped past the limit."""
        history = AnalysisHistory(max_entries=2)
        for i in range(4):
            history.record(_result(Verdict.TRUTH, str(i)))

        assert [e.result.input_echo.text for e in history.list()] == ["3", "2"]

    def test_stats_per_submitter(self):
        """Test verdict counts with and without a submitter filter."""
        history = AnalysisHistory()
        history.record(_result(Verdict.TRUTH), "a")
        history.record(_result(Verdict.HARMFUL), "a")
        history.record(_result(Verdict.MISINFORMATION), "b")

        overall = history.stats()
        assert (overall.total, overall.truth, overall.harmful, overall.misinformation) == (3, 1, 1, 1)

        mine = history.stats("a")
        assert (mine.total, mine.misinformation) == (2, 0)

    def test_limit_and_clear(self):
        """Test the list limit and clearing."""
        history = AnalysisHistory()
        for _ in range(3):
            history.record(_result(Verdict.TRUTH), "a")

        assert len(history.list(limit=2)) == 2
        assert history.clear() == 3
        assert history.list() == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
