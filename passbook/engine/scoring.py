"""
Confidence scoring for the Passbook engine.

Per-transaction confidence rewards a valid date, a positive amount and a
meaningful description. Document accuracy averages those confidences and
adds bonuses for complete rows and for reference codes.
"""

from decimal import Decimal
from typing import Sequence

from passbook.engine.line_parser import is_valid_date
from passbook.engine.models import Transaction, TransactionCandidate


class ConfidenceScorer:
    """
    Scores transactions and documents.

    Transaction confidence: 0.80 base, +0.10 valid date, +0.05 amount > 0,
    +0.05 description longer than 5 characters, capped at 1.0.

    Document accuracy: mean confidence, +0.10 x share of complete rows,
    +0.05 when any row carries a reference, as a 0-100 percentage capped at 100.
    """

    BASE_CONFIDENCE = 0.8
    VALID_DATE_BONUS = 0.1
    POSITIVE_AMOUNT_BONUS = 0.05
    DESCRIPTION_BONUS = 0.05
    MIN_DESCRIPTION_LENGTH = 5

    COMPLETENESS_WEIGHT = 0.1
    REFERENCE_BONUS = 0.05

    def score(self, candidate: TransactionCandidate) -> float:
        confidence = self.BASE_CONFIDENCE

        if is_valid_date(candidate.date):
            confidence += self.VALID_DATE_BONUS
        if candidate.amount > Decimal("0"):
            confidence += self.POSITIVE_AMOUNT_BONUS
        if len(candidate.description) > self.MIN_DESCRIPTION_LENGTH:
            confidence += self.DESCRIPTION_BONUS

        return min(confidence, 1.0)

    def annotate(self, candidate: TransactionCandidate) -> Transaction:
        """Attach a confidence to a candidate and freeze it into a Transaction."""
        candidate.confidence = self.score(candidate)
        return Transaction.from_candidate(candidate, candidate.confidence)

    def accuracy(self, transactions: Sequence[Transaction]) -> float:
        if not transactions:
            return 0.0

        count = len(transactions)
        avg_confidence = sum(t.confidence for t in transactions) / count

        complete = sum(1 for t in transactions if t.is_complete)
        bonus = (complete / count) * self.COMPLETENESS_WEIGHT

        if any(t.reference for t in transactions):
            bonus += self.REFERENCE_BONUS

        return min((avg_confidence + bonus) * 100, 100.0)
