"""Tests for candidate scoring, greedy auto-matching and summaries."""

from datetime import date
from decimal import Decimal

import pytest

from cashbook.domain.entities import (
    BankStatementLine,
    CandidateTransaction,
    ReconciliationStatus,
    SourceType,
)
from cashbook.domain.matcher import (
    AUTO_MATCH_THRESHOLD,
    SUGGESTION_THRESHOLD,
    find_matches,
    get_reconciliation_summary,
    plan_auto_match,
    score_candidate,
)


def _line(id, amount, description="VIR", day=date(2025, 3, 10), status=ReconciliationStatus.UNMATCHED, reference=None):
    return BankStatementLine(
        id=id,
        statement_id=1,
        line_number=id,
        transaction_date=day,
        description=description,
        reference=reference,
        amount=Decimal(amount),
        reconciliation_status=status,
        matched_source_type=None,
        matched_source_id=None,
        matched_by=None,
        matched_at=None,
        match_confidence=None,
    )


def _candidate(id, amount, description="", day=date(2025, 3, 9), source_type=SourceType.EXPENSE, **kwargs):
    return CandidateTransaction(
        id=str(id),
        source_type=source_type,
        date=day,
        amount=Decimal(amount),
        description=description,
        **kwargs,
    )


class TestScoring:
    """Tests for score_candidate and find_matches."""

    def test_edf_example_scores_above_auto_threshold(self):
        line = _line(1, "-89.90", description="EDF FACTURE")
        candidate = _candidate(1, "-89.90", description="EDF")

        scored = score_candidate(line, candidate)

        assert scored is not None
        assert scored.score > AUTO_MATCH_THRESHOLD
        assert scored.date_distance == 1

    def test_amount_mismatch_is_excluded(self):
        line = _line(1, "-89.90")
        assert score_candidate(line, _candidate(1, "-89.80")) is None
        # Same magnitude, opposite sign
        assert score_candidate(line, _candidate(2, "89.90")) is None

    def test_sub_cent_difference_still_matches(self):
        assert score_candidate(_line(1, "-89.90"), _candidate(1, "-89.905")) is not None

    def test_date_score_decays_to_zero(self):
        line = _line(1, "-50.00", description="xyz")
        close = score_candidate(line, _candidate(1, "-50.00", day=date(2025, 3, 10)))
        far = score_candidate(line, _candidate(2, "-50.00", day=date(2025, 1, 1)))

        assert close.score == Decimal("80.00")
        assert far.score == Decimal("50.00")

    def test_reference_in_line_gives_full_text_score(self):
        line = _line(1, "1440.00", description="VIR ACME REF INV-42", day=date(2025, 3, 1))
        candidate = _candidate(
            1,
            "1440.00",
            description="Facture INV-42 - ACME",
            day=date(2025, 3, 1),
            source_type=SourceType.INVOICE,
            reference="INV-42",
            counterparty="ACME",
        )

        scored = score_candidate(line, candidate)

        # 50 amount + 30 date + 20 text + 5 counterparty, capped
        assert scored.score == Decimal("100.00")

    def test_short_reference_inside_other_number_earns_nothing(self):
        line = _line(1, "500.00", description="VIR ACME REF F-2025-0100")
        candidate = _candidate(
            11, "500.00", description="Facture 1", source_type=SourceType.INVOICE, reference="1"
        )

        scored = score_candidate(line, candidate)

        # 50 amount + 29.5 date, no text points
        assert scored.score == Decimal("79.50")

    def test_reference_must_match_whole_words(self):
        line = _line(1, "500.00", description="VIR REF INV-4200")
        candidate = _candidate(1, "500.00", source_type=SourceType.INVOICE, reference="INV-42")

        assert score_candidate(line, candidate).score == Decimal("79.50")

    def test_named_invoice_beats_short_numbered_neighbour(self):
        line = _line(1, "500.00", description="VIR ACME REF F-2025-0100")
        named = _candidate(
            10,
            "500.00",
            description="Facture F-2025-0100 - ACME",
            day=date(2025, 3, 1),
            source_type=SourceType.INVOICE,
            reference="F-2025-0100",
            counterparty="ACME",
        )
        short = _candidate(
            11,
            "500.00",
            description="Facture 1 - ACME",
            day=date(2025, 3, 9),
            source_type=SourceType.INVOICE,
            reference="1",
            counterparty="ACME",
        )

        assignments, _ = plan_auto_match([line], [short, named])

        assert [scored.candidate.id for _, scored in assignments] == ["10"]

    def test_scores_stay_within_bounds(self):
        line = _line(1, "-10.00", description="a b c")
        for day in (date(2025, 3, 10), date(2024, 1, 1)):
            scored = score_candidate(line, _candidate(1, "-10.00", description="a b c", day=day))
            assert Decimal("0") <= scored.score <= Decimal("100")

    def test_find_matches_prefers_closer_date(self):
        line = _line(1, "-89.90", description="EDF FACTURE")
        recent = _candidate(1, "-89.90", description="EDF", day=date(2025, 3, 9))
        old = _candidate(2, "-89.90", description="EDF", day=date(2025, 1, 1))

        ranked = find_matches(line, [old, recent])

        assert [s.candidate.id for s in ranked] == ["1", "2"]
        assert ranked[0].score > ranked[1].score

    def test_find_matches_ties_are_deterministic(self):
        line = _line(1, "-20.00", description="zzz")
        candidates = [_candidate(3, "-20.00"), _candidate(1, "-20.00"), _candidate(2, "-20.00")]

        ranked = find_matches(line, candidates)

        assert [s.candidate.id for s in ranked] == ["1", "2", "3"]

    def test_find_matches_text_filter_and_limit(self):
        line = _line(1, "-20.00")
        candidates = [
            _candidate(1, "-20.00", description="Orange"),
            _candidate(2, "-20.00", description="Free mobile"),
            _candidate(3, "-20.00", description="Orange pro"),
        ]

        assert [s.candidate.id for s in find_matches(line, candidates, text_filter="orange")] == ["1", "3"]
        assert len(find_matches(line, candidates, limit=1)) == 1


class TestAutoMatch:
    """Tests for plan_auto_match."""

    def test_edf_example_picks_recent_expense(self):
        line = _line(1, "-89.90", description="EDF FACTURE")
        recent = _candidate(1, "-89.90", description="EDF", day=date(2025, 3, 9))
        old = _candidate(2, "-89.90", description="EDF", day=date(2025, 1, 1))

        assignments, suggestions = plan_auto_match([line], [old, recent])

        assert len(assignments) == 1
        assert assignments[0][1].candidate.id == "1"
        assert suggestions == []

    def test_each_candidate_claimed_once(self):
        lines = [
            _line(1, "-89.90", description="EDF FACTURE"),
            _line(2, "-89.90", description="EDF FACTURE"),
            _line(3, "-89.90", description="EDF FACTURE"),
        ]
        candidates = [
            _candidate(1, "-89.90", description="EDF", day=date(2025, 3, 9)),
            _candidate(2, "-89.90", description="EDF", day=date(2025, 3, 8)),
        ]

        assignments, _ = plan_auto_match(lines, candidates)

        keys = [(s.candidate.source_type, s.candidate.id) for _, s in assignments]
        assert len(keys) == len(set(keys)) == 2
        # Greedy in line order: the first line takes the best candidate
        assert assignments[0][0].id == 1
        assert assignments[0][1].candidate.id == "1"

    def test_claimed_keys_are_skipped(self):
        line = _line(1, "-89.90", description="EDF FACTURE")
        candidate = _candidate(1, "-89.90", description="EDF")

        assignments, _ = plan_auto_match([line], [candidate], claimed={("expense", "1")})

        assert assignments == []

    def test_non_unmatched_lines_are_left_alone(self):
        line = _line(1, "-89.90", description="EDF FACTURE", status=ReconciliationStatus.IGNORED)

        assignments, suggestions = plan_auto_match([line], [_candidate(1, "-89.90", description="EDF")])

        assert assignments == []
        assert suggestions == []

    def test_weak_candidates_become_suggestions(self):
        line = _line(1, "-40.00", description="CB 1234")
        candidate = _candidate(1, "-40.00", description="Restaurant", day=date(2025, 2, 1))

        assignments, suggestions = plan_auto_match([line], [candidate])

        assert assignments == []
        assert len(suggestions) == 1
        assert suggestions[0].line_id == 1
        assert suggestions[0].candidates[0].score >= SUGGESTION_THRESHOLD


class TestSummary:
    """Tests for get_reconciliation_summary."""

    def test_counts_and_totals(self):
        lines = [
            _line(1, "100.00", status=ReconciliationStatus.MATCHED),
            _line(2, "-40.00", status=ReconciliationStatus.MATCHED),
            _line(3, "-10.00"),
            _line(4, "25.00"),
            _line(5, "-5.00", status=ReconciliationStatus.IGNORED),
            _line(6, "60.00"),
        ]

        summary = get_reconciliation_summary(lines)

        assert summary.total_lines == 6
        assert summary.matched_lines + summary.unmatched_lines + summary.ignored_lines == 6
        assert summary.matched_lines == 2
        assert summary.ignored_lines == 1
        assert summary.match_rate == Decimal("33.3")
        assert summary.total_credits == Decimal("185.00")
        assert summary.total_debits == Decimal("55.00")
        assert summary.matched_credits == Decimal("100.00")
        assert summary.matched_debits == Decimal("40.00")
        assert summary.unmatched_credits == Decimal("85.00")
        assert summary.unmatched_debits == Decimal("10.00")
        assert summary.difference == Decimal("75.00")

    def test_empty_statement(self):
        summary = get_reconciliation_summary([])

        assert summary.total_lines == 0
        assert summary.match_rate == Decimal("0.0")
        assert summary.difference == Decimal("0.00")


@pytest.mark.parametrize("threshold", [AUTO_MATCH_THRESHOLD, SUGGESTION_THRESHOLD])
def test_thresholds_are_within_score_range(threshold):
    assert Decimal("0") < threshold < Decimal("100")
