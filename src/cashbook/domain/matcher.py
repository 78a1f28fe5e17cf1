"""Scoring of bank statement lines against candidate transactions.

A candidate must carry the same signed amount as the line (within one cent);
anything else is excluded rather than down-scored. Surviving candidates are
scored out of 100:

- amount match: 50 points
- date proximity: up to 30 points, decaying linearly to 0 at 60 days
- text similarity: up to 20 points (reference or description found as whole
  words of the line, or token overlap), plus 5 points when the counterparty is named

Auto-matching is greedy: lines are taken in statement order and each claims
its best unclaimed candidate. It is not an optimal assignment; ambiguous
lines are left for manual matching.
"""

import re
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Sequence

from cashbook.domain.entities import (
    AmbiguousMatch,
    BankStatementLine,
    CandidateTransaction,
    ReconciliationStatus,
    ReconciliationSummary,
    ScoredCandidate,
)

AMOUNT_TOLERANCE = Decimal("0.01")
MAX_DATE_WINDOW_DAYS = 60
AUTO_MATCH_THRESHOLD = Decimal("70")
SUGGESTION_THRESHOLD = Decimal("50")

AMOUNT_POINTS = Decimal("50")
DATE_POINTS = Decimal("30")
TEXT_POINTS = Decimal("20")
COUNTERPARTY_POINTS = Decimal("5")
MAX_SCORE = Decimal("100")

MIN_PHRASE_LENGTH = 3

_TOKEN_RE = re.compile(r"[0-9a-zà-ÿ]{2,}")
_WORD_RE = re.compile(r"[0-9a-zà-ÿ]+")


def _tokens(text: Optional[str]) -> set[str]:
    return set(_TOKEN_RE.findall((text or "").lower()))


def _words(text: Optional[str]) -> list[str]:
    return _WORD_RE.findall((text or "").lower())


def _phrase_in(phrase: Optional[str], line_words: set[str]) -> bool:
    """True when every word of ``phrase`` is a whole word of the line.

    Punctuation is ignored on both sides; phrases shorter than
    MIN_PHRASE_LENGTH alphanumerics never match.
    """
    words = _words(phrase)
    if len("".join(words)) < MIN_PHRASE_LENGTH:
        return False
    return set(words) <= line_words


def _text_score(line: BankStatementLine, candidate: CandidateTransaction) -> Decimal:
    line_text = " ".join(filter(None, [line.description, line.reference])).lower()
    line_words = set(_words(line_text))
    if _phrase_in(candidate.reference, line_words):
        return TEXT_POINTS

    description = (candidate.description or "").strip().lower()
    if _phrase_in(description, line_words):
        return TEXT_POINTS

    line_tokens = _tokens(line_text)
    candidate_tokens = _tokens(description)
    if not line_tokens or not candidate_tokens:
        return Decimal("0")
    overlap = len(line_tokens & candidate_tokens)
    ratio = Decimal(overlap) / Decimal(min(len(line_tokens), len(candidate_tokens)))
    return TEXT_POINTS * ratio


def _counterparty_score(line: BankStatementLine, candidate: CandidateTransaction) -> Decimal:
    counterparty = _tokens(candidate.counterparty)
    if counterparty and counterparty <= _tokens(line.description):
        return COUNTERPARTY_POINTS
    return Decimal("0")


def date_distance(line: BankStatementLine, candidate: CandidateTransaction) -> Optional[int]:
    """Days between the line and the candidate, or None if the candidate has no date."""
    if candidate.date is None:
        return None
    return abs((line.transaction_date - candidate.date).days)


def score_candidate(
    line: BankStatementLine, candidate: CandidateTransaction
) -> Optional[ScoredCandidate]:
    """Score one candidate for a line.

    Returns:
        ScoredCandidate with a score in [0, 100], or None when the amount or
        sign does not match
    """
    if abs(line.amount - candidate.amount) >= AMOUNT_TOLERANCE:
        return None

    score = AMOUNT_POINTS
    distance = date_distance(line, candidate)
    if distance is not None and distance < MAX_DATE_WINDOW_DAYS:
        score += DATE_POINTS * (Decimal(MAX_DATE_WINDOW_DAYS - distance) / MAX_DATE_WINDOW_DAYS)

    score += _text_score(line, candidate)
    score += _counterparty_score(line, candidate)
    score = min(score, MAX_SCORE).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return ScoredCandidate(candidate=candidate, score=score, date_distance=distance)


def _sort_key(scored: ScoredCandidate):
    distance = scored.date_distance if scored.date_distance is not None else 10**6
    return (-scored.score, distance, scored.candidate.source_type.value, scored.candidate.id)


def _passes_filter(candidate: CandidateTransaction, text_filter: Optional[str]) -> bool:
    if not text_filter:
        return True
    needle = text_filter.strip().lower()
    haystack = " ".join(
        filter(None, [candidate.description, candidate.reference, candidate.counterparty])
    ).lower()
    return needle in haystack


def find_matches(
    line: BankStatementLine,
    candidates: Iterable[CandidateTransaction],
    text_filter: Optional[str] = None,
    limit: Optional[int] = 20,
) -> list[ScoredCandidate]:
    """Rank the candidates that can explain a line, best first.

    Ties are broken by date distance, then source type, then candidate ID so
    the order is deterministic.
    """
    scored = []
    for candidate in candidates:
        if not _passes_filter(candidate, text_filter):
            continue
        result = score_candidate(line, candidate)
        if result is not None:
            scored.append(result)
    scored.sort(key=_sort_key)
    if limit is not None:
        scored = scored[:limit]
    return scored


def candidate_key(source_type, source_id) -> tuple[str, str]:
    """Identity of a candidate across runs: (source type, source ID)."""
    value = source_type.value if hasattr(source_type, "value") else str(source_type)
    return value, str(source_id)


def plan_auto_match(
    lines: Sequence[BankStatementLine],
    candidates: Sequence[CandidateTransaction],
    claimed: Iterable[tuple[str, str]] = (),
) -> tuple[list[tuple[BankStatementLine, ScoredCandidate]], list[AmbiguousMatch]]:
    """Plan a greedy auto-match run over the unmatched lines.

    Args:
        lines: Statement lines in statement order
        candidates: Normalized candidate transactions
        claimed: Candidate keys already matched elsewhere on the statement

    Returns:
        Tuple of (line/candidate assignments, suggestions for lines left
        unmatched that have candidates scoring at least SUGGESTION_THRESHOLD)
    """
    taken = set(claimed)
    assignments: list[tuple[BankStatementLine, ScoredCandidate]] = []
    suggestions: list[AmbiguousMatch] = []

    ordered = sorted(lines, key=lambda line: (line.line_number, line.id))
    for line in ordered:
        if line.reconciliation_status != ReconciliationStatus.UNMATCHED:
            continue
        ranked = [
            s
            for s in find_matches(line, candidates, limit=None)
            if candidate_key(s.candidate.source_type, s.candidate.id) not in taken
        ]
        best = ranked[0] if ranked else None
        if best is not None and best.score > AUTO_MATCH_THRESHOLD:
            taken.add(candidate_key(best.candidate.source_type, best.candidate.id))
            assignments.append((line, best))
            continue

        plausible = tuple(s for s in ranked if s.score >= SUGGESTION_THRESHOLD)
        if plausible:
            suggestions.append(AmbiguousMatch(line_id=line.id, candidates=plausible[:5]))

    return assignments, suggestions


def get_reconciliation_summary(lines: Iterable[BankStatementLine]) -> ReconciliationSummary:
    """Reduce a statement's lines to counts and totals.

    Credits are positive amounts, debits are reported as positive totals of
    the negative amounts. ``difference`` is the net amount of lines still
    unmatched.
    """
    zero = Decimal("0.00")
    total = matched = unmatched = ignored = 0
    total_credits = total_debits = zero
    matched_credits = matched_debits = zero
    unmatched_credits = unmatched_debits = zero
    difference = zero

    for line in lines:
        total += 1
        credit = line.amount if line.amount > 0 else zero
        debit = -line.amount if line.amount < 0 else zero
        total_credits += credit
        total_debits += debit

        if line.reconciliation_status == ReconciliationStatus.MATCHED:
            matched += 1
            matched_credits += credit
            matched_debits += debit
        elif line.reconciliation_status == ReconciliationStatus.IGNORED:
            ignored += 1
        else:
            unmatched += 1
            unmatched_credits += credit
            unmatched_debits += debit
            difference += line.amount

    if total:
        match_rate = (Decimal(matched) * 100 / Decimal(total)).quantize(
            Decimal("0.1"), rounding=ROUND_HALF_UP
        )
    else:
        match_rate = Decimal("0.0")

    return ReconciliationSummary(
        total_lines=total,
        matched_lines=matched,
        unmatched_lines=unmatched,
        ignored_lines=ignored,
        match_rate=match_rate,
        total_credits=total_credits,
        total_debits=total_debits,
        matched_credits=matched_credits,
        matched_debits=matched_debits,
        unmatched_credits=unmatched_credits,
        unmatched_debits=unmatched_debits,
        difference=difference,
    )
