"""
Duplicate elimination for parsed transaction candidates.

OCR often repeats a row with a slightly different tail (a smudged reference,
an extra token), so two candidates are duplicates when they share date,
amount and the first 20 characters of the description.
"""

from typing import Iterable, List

import structlog

from passbook.engine.models import TransactionCandidate

logger = structlog.get_logger(__name__)

DESCRIPTION_KEY_LENGTH = 20


class Deduplicator:
    """Stable filter keeping the first occurrence of each duplicate key."""

    def dedupe(self, candidates: Iterable[TransactionCandidate]) -> List[TransactionCandidate]:
        seen = set()
        unique: List[TransactionCandidate] = []
        dropped = 0

        for candidate in candidates:
            key = candidate.duplicate_key
            if key in seen:
                dropped += 1
                continue
            seen.add(key)
            unique.append(candidate)

        if dropped:
            logger.debug("Dropped duplicate transactions", dropped=dropped, kept=len(unique))

        return unique
