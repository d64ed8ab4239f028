"""
Tests for the Passbook Engine components.

Covers:
- Bank detection order and profile lookup
- Account metadata extraction with Not Found sentinels
- Date, amount and type sub-algorithms
- The transaction line cascade
- Deduplication order and idempotence
- Transaction confidence and document accuracy
"""

from datetime import date
from decimal import Decimal

import pytest

from passbook.engine.bank_profiles import BANK_PROFILES, BankProfileRegistry
from passbook.engine.dedup import Deduplicator
from passbook.engine.fields import (
    FieldExtractor,
    extract_account_holder,
    extract_account_number,
    extract_statement_period,
)
from passbook.engine.line_parser import (
    GENERIC_CONFIDENCE,
    PROFILE_CONFIDENCE,
    TransactionLineParser,
    determine_transaction_type,
    normalize_date,
    parse_amount,
)
from passbook.engine.models import (
    NOT_FOUND,
    AccuracyLevel,
    BankCode,
    ExtractionConfig,
    Transaction,
    TransactionCandidate,
    TransactionType,
)
from passbook.engine.scoring import ConfidenceScorer


def make_candidate(description="ATM WITHDRAWAL MG ROAD", amount="500.00", posted_on=date(2024, 2, 5), **kwargs):
    return TransactionCandidate(
        date=posted_on.strftime("%d/%m/%Y"),
        posted_on=posted_on,
        description=description,
        amount=Decimal(amount),
        transaction_type=kwargs.pop("transaction_type", TransactionType.DEBIT),
        **kwargs,
    )


def make_transaction(confidence=0.9, amount="100.00", reference=None):
    return Transaction(
        date=date(2024, 1, 15),
        description="UPI PAYMENT",
        amount=Decimal(amount),
        type=TransactionType.DEBIT,
        confidence=confidence,
        reference=reference,
    )


# =============================================================================
# Bank Profile Tests
# =============================================================================

class TestBankProfileRegistry:
    """Test bank detection and lookup."""

    @pytest.fixture
    def registry(self) -> BankProfileRegistry:
        return BankProfileRegistry()

    def test_catalog_order(self, registry):
        """Test that the catalog keeps its fixed priority order."""
        assert registry.codes == (BankCode.SBI, BankCode.HDFC, BankCode.ICICI, BankCode.AXIS)
        assert len(registry) == 4

    def test_detect_by_display_name(self, registry):
        """Test detection by full bank name, case-insensitively."""
        code, profile = registry.detect("Welcome to axis bank net banking")
        assert code == "AXIS"
        assert profile.name == "Axis Bank"

    def test_detect_by_short_code(self, registry):
        """Test detection by short code."""
        code, profile = registry.detect("ICICI e-statement")
        assert code == "ICICI"
        assert profile.code == BankCode.ICICI

    def test_detect_precedence_is_deterministic(self, registry):
        """Test that the earlier catalog entry wins when several banks appear."""
        text = "Transfer to ICICI account via HDFC netbanking"
        results = {registry.detect(text)[0] for _ in range(5)}
        assert results == {"HDFC"}

    def test_detect_unknown(self, registry):
        """Test that unmatched text yields the UNKNOWN code and no profile."""
        assert registry.detect("Statement of Account") == ("UNKNOWN", None)

    def test_get_by_code(self, registry):
        """Test lookup by enum and by string."""
        assert registry.get(BankCode.SBI).name == "State Bank of India"
        assert registry.get("hdfc").name == "HDFC Bank"
        assert registry.get("CITI") is None

    def test_every_profile_has_patterns(self):
        """Test that each profile carries line and reference patterns."""
        for profile in BANK_PROFILES:
            assert profile.transaction_line is not None
            assert profile.reference_pattern is not None
            assert len(profile.date_formats) == 2

    def test_line_pattern_uses_first_date_format(self, registry):
        """Test that transaction lines start with the profile's primary date format."""
        hdfc = registry.get(BankCode.HDFC)
        assert hdfc.date_formats[0].fullmatch("05/02/24")
        assert hdfc.transaction_line.match("05/02/24 UPI SHOP 10.00")
        assert not hdfc.transaction_line.match("05-02-24 UPI SHOP 10.00")

        sbi = registry.get(BankCode.SBI)
        assert sbi.date_formats[0].fullmatch("01/02/2024")
        assert sbi.amount_format.search("1,50,000.00").group(1) == "1,50,000.00"

    def test_profile_reference_lookup(self, registry):
        """Test reference code extraction per bank."""
        assert registry.get(BankCode.SBI).find_reference("NEFT REF: N123456 10.00") == "N123456"
        assert registry.get(BankCode.HDFC).find_reference("IMPS TXN 998877 10.00") == "998877"
        assert registry.get(BankCode.ICICI).find_reference("REF NO: AB12 10.00") == "AB12"
        assert registry.get(BankCode.AXIS).find_reference("UTR:UTIB0001 10.00") == "UTIB0001"
        assert registry.get(BankCode.AXIS).find_reference("no reference here") is None


# =============================================================================
# Field Extraction Tests
# =============================================================================

class TestFieldExtractor:
    """Test account metadata extraction."""

    TEXT = (
        "Account Holder: RAHUL SHARMA\n"
        "Account Number: XXXX1234\n"
        "Statement Period: 01/01/2024 to 31/01/2024\n"
        "01/01/2024 OPENING BALANCE 1,00,000.00\n"
    )

    def test_extract_all_fields(self):
        """Test extraction of every field from a typical header."""
        fields = FieldExtractor().extract(self.TEXT)

        assert fields.account_number == "XXXX1234"
        assert fields.account_holder == "RAHUL SHARMA"
        assert fields.statement_period == "01/01/2024 to 31/01/2024"

    def test_account_number_alternatives(self):
        """Test the A/C and bare Account forms."""
        assert extract_account_number("A/C: 00112233") == "00112233"
        assert extract_account_number("Savings Account 445566") == "445566"

    def test_holder_from_name_label(self):
        """Test holder fallback to a Name label."""
        assert extract_account_holder("Customer Name: Priya Nair\nBranch: MG Road") == "Priya Nair"

    def test_period_with_dashes(self):
        """Test a dashed period under the bare Period label."""
        assert extract_statement_period("Period: 01-03-2024 to 31-03-2024") == "01-03-2024 to 31-03-2024"

    def test_missing_fields_use_sentinel(self):
        """Test that absent fields resolve to Not Found."""
        fields = FieldExtractor().extract("nothing useful here")

        assert fields.account_number == NOT_FOUND
        assert fields.account_holder == NOT_FOUND
        assert fields.statement_period == NOT_FOUND


# =============================================================================
# Sub-algorithm Tests
# =============================================================================

class TestNormalizeDate:
    """Test day-month-year date normalization."""

    @pytest.mark.parametrize("token,expected", [
        ("01/02/2024", date(2024, 2, 1)),
        ("01-02-2024", date(2024, 2, 1)),
        ("15/08/23", date(2023, 8, 15)),
        ("1/2/2024", date(2024, 2, 1)),
    ])
    def test_valid_dates(self, token, expected):
        """Test that tokens are read as day, month, year."""
        assert normalize_date(token) == expected

    @pytest.mark.parametrize("token", ["31/02/2024", "12/13/2024", "2024-02-01", "not a date"])
    def test_invalid_dates(self, token):
        """Test that impossible or malformed dates are rejected."""
        assert normalize_date(token) is None


class TestParseAmount:
    """Test amount parsing."""

    def test_indian_grouping(self):
        assert parse_amount("1,50,000.00") == Decimal("150000.00")

    def test_western_grouping(self):
        assert parse_amount("1,250,000.50") == Decimal("1250000.50")

    def test_missing_amount(self):
        assert parse_amount(None) is None
        assert parse_amount("") is None

    def test_unparseable_amount(self):
        assert parse_amount("12,ab.00") is None


class TestDetermineTransactionType:
    """Test credit/debit classification."""

    def test_indicator_cr_any_case(self):
        """Test that an indicator containing CR means credit."""
        assert determine_transaction_type("CR", "") == TransactionType.CREDIT
        assert determine_transaction_type("cr", "") == TransactionType.CREDIT

    def test_indicator_overrides_keywords(self):
        """Test that the indicator wins over description keywords."""
        assert determine_transaction_type("DR", "SALARY JAN") == TransactionType.DEBIT

    def test_salary_is_credit(self):
        assert determine_transaction_type(None, "Monthly SALARY") == TransactionType.CREDIT

    def test_debit_keyword(self):
        assert determine_transaction_type(None, "ATM Withdrawal") == TransactionType.DEBIT

    def test_credit_keywords_checked_first(self):
        """Test that credit keywords are checked before debit keywords."""
        assert determine_transaction_type(None, "payment of interest") == TransactionType.CREDIT

    def test_default_is_debit(self):
        assert determine_transaction_type(None, "POS 4521 BIG BAZAAR") == TransactionType.DEBIT


# =============================================================================
# Line Parser Tests
# =============================================================================

class TestTransactionLineParser:
    """Test the matcher cascade."""

    @pytest.fixture
    def parser(self) -> TransactionLineParser:
        return TransactionLineParser()

    @pytest.fixture
    def registry(self) -> BankProfileRegistry:
        return BankProfileRegistry()

    def test_profile_line_with_marker_and_balance(self, parser, registry):
        """Test a full bank-specific line."""
        line = "01/02/2024 SALARY CREDIT XYZ CORP 50,000.00 CR 1,50,000.00"
        candidate = parser.parse(line, registry.get(BankCode.SBI))

        assert candidate.posted_on == date(2024, 2, 1)
        assert candidate.description == "SALARY CREDIT XYZ CORP"
        assert candidate.amount == Decimal("50000.00")
        assert candidate.indicator == "CR"
        assert candidate.balance == Decimal("150000.00")
        assert candidate.transaction_type == TransactionType.CREDIT
        assert candidate.base_confidence == PROFILE_CONFIDENCE
        assert candidate.matched_by == "profile:SBI"

    def test_profile_line_extracts_reference(self, parser, registry):
        """Test reference extraction from a bank-specific line."""
        line = "05/02/24 NEFT TXN: ABC123 2,500.00 DR 47,500.00"
        candidate = parser.parse(line, registry.get(BankCode.HDFC))

        assert candidate.posted_on == date(2024, 2, 5)
        assert candidate.reference == "ABC123"
        assert candidate.transaction_type == TransactionType.DEBIT

    def test_profile_marker_any_case(self, parser, registry):
        """Test that a mixed-case marker is captured and keeps the balance."""
        line = "01/03/2024 PAYMENT REVERSAL 500.00 Cr 1,000.00"
        candidate = parser.parse(line, registry.get(BankCode.SBI))

        assert candidate.matched_by == "profile:SBI"
        assert candidate.description == "PAYMENT REVERSAL"
        assert candidate.indicator == "Cr"
        assert candidate.transaction_type == TransactionType.CREDIT
        assert candidate.balance == Decimal("1000.00")

        lower = parser.parse("01/03/2024 ATM CASH 200.00 dr 800.00", registry.get(BankCode.SBI))
        assert lower.indicator == "dr"
        assert lower.balance == Decimal("800.00")

    def test_falls_back_to_generic(self, parser, registry):
        """Test that a line the bank pattern rejects is tried generically."""
        line = "05/02/2024 NEFT TXN: ABC123 2,500.00"
        candidate = parser.parse(line, registry.get(BankCode.HDFC))

        assert candidate.matched_by == "generic:dd/mm/yyyy"
        assert candidate.base_confidence == GENERIC_CONFIDENCE
        assert candidate.reference is None
        assert candidate.balance is None

    def test_generic_dash_dates(self, parser):
        """Test generic parsing of dashed dates without a profile."""
        candidate = parser.parse("15-03-2024 INTEREST PAID 120.00")

        assert candidate.matched_by == "generic:dd-mm-yyyy"
        assert candidate.posted_on == date(2024, 3, 15)
        assert candidate.transaction_type == TransactionType.CREDIT

    def test_header_line_yields_nothing(self, parser, registry):
        """Test that a page header is discarded without error."""
        assert parser.parse("Date Description Amount Balance", registry.get(BankCode.SBI)) is None
        assert parser.parse("Page 1 of 3") is None

    def test_invalid_calendar_date_discarded(self, parser, registry):
        """Test that 31/02 is rejected by every matcher."""
        assert parser.parse("31/02/2024 FEE 100.00", registry.get(BankCode.SBI)) is None

    def test_cascade_order(self, parser, registry):
        """Test that the bank matcher precedes the generic matchers."""
        labels = [m.label for m in parser.matchers_for(registry.get(BankCode.ICICI))]
        assert labels == ["profile:ICICI", "generic:dd/mm/yyyy", "generic:dd-mm-yyyy"]

        assert [m.label for m in parser.matchers_for(None)] == ["generic:dd/mm/yyyy", "generic:dd-mm-yyyy"]

    def test_parse_lines_keeps_order(self, parser):
        """Test that candidates come back in line order."""
        lines = [
            "02/01/2024 FIRST ENTRY 10.00",
            "not a transaction",
            "03/01/2024 SECOND ENTRY 20.00",
        ]
        candidates = parser.parse_lines(lines)
        assert [c.description for c in candidates] == ["FIRST ENTRY", "SECOND ENTRY"]


# =============================================================================
# Deduplication Tests
# =============================================================================

class TestDeduplicator:
    """Test duplicate elimination."""

    def test_first_seen_order(self):
        """Test dedupe([A, B, A']) == [A, B]."""
        a = make_candidate("ATM WITHDRAWAL MG ROAD BRANCH 1")
        b = make_candidate("UPI PAYMENT SWIGGY", amount="250.00")
        a_prime = make_candidate("ATM WITHDRAWAL MG ROAD BRANCH 2")

        assert Deduplicator().dedupe([a, b, a_prime]) == [a, b]

    def test_idempotent(self):
        """Test that deduplicating twice changes nothing."""
        candidates = [
            make_candidate("ATM WITHDRAWAL MG ROAD BRANCH 1"),
            make_candidate("ATM WITHDRAWAL MG ROAD BRANCH 2"),
            make_candidate("ATM WITHDRAWAL MG ROAD BRANCH 1", posted_on=date(2024, 2, 6)),
        ]
        deduplicator = Deduplicator()
        once = deduplicator.dedupe(candidates)

        assert deduplicator.dedupe(once) == once
        assert len(once) == 2

    def test_different_amounts_kept(self):
        """Test that rows differing only in amount are not duplicates."""
        rows = [make_candidate(amount="100.00"), make_candidate(amount="100.01")]
        assert len(Deduplicator().dedupe(rows)) == 2


# =============================================================================
# Scoring Tests
# =============================================================================

class TestConfidenceScorer:
    """Test transaction confidence and document accuracy."""

    @pytest.fixture
    def scorer(self) -> ConfidenceScorer:
        return ConfidenceScorer()

    def test_full_confidence(self, scorer):
        """Test that a complete row scores 1.0."""
        assert scorer.score(make_candidate()) == pytest.approx(1.0)

    def test_short_description_penalized(self, scorer):
        assert scorer.score(make_candidate("ATM")) == pytest.approx(0.95)

    def test_zero_amount_penalized(self, scorer):
        assert scorer.score(make_candidate(amount="0.00")) == pytest.approx(0.95)

    def test_annotate_attaches_confidence(self, scorer):
        """Test that annotate records the confidence and builds a Transaction."""
        candidate = make_candidate("  UPI PAYMENT SWIGGY  ")
        transaction = scorer.annotate(candidate)

        assert candidate.confidence == transaction.confidence
        assert transaction.description == "UPI PAYMENT SWIGGY"
        assert 0.0 <= transaction.confidence <= 1.0

    def test_accuracy_empty(self, scorer):
        assert scorer.accuracy([]) == 0.0

    def test_accuracy_capped(self, scorer):
        """Test that accuracy never exceeds 100."""
        transactions = [make_transaction(1.0), make_transaction(1.0, reference="R1")]
        assert scorer.accuracy(transactions) == 100.0

    def test_accuracy_with_incomplete_row(self, scorer):
        """Test that a zero-amount row earns no completeness bonus."""
        assert scorer.accuracy([make_transaction(0.85, amount="0")]) == pytest.approx(85.0)

    def test_accuracy_reference_bonus(self, scorer):
        """Test completeness and reference bonuses."""
        transactions = [make_transaction(0.8), make_transaction(0.8, reference="UTR1")]
        assert scorer.accuracy(transactions) == pytest.approx(95.0)


# =============================================================================
# Model Tests
# =============================================================================

class TestModels:
    """Test engine model helpers."""

    def test_accuracy_levels(self):
        assert AccuracyLevel.from_accuracy(92.0) == AccuracyLevel.HIGH
        assert AccuracyLevel.from_accuracy(70.0) == AccuracyLevel.MEDIUM
        assert AccuracyLevel.from_accuracy(12.5) == AccuracyLevel.LOW

    def test_processing_method_label(self):
        assert ExtractionConfig().processing_method == "Multi-pass Analysis"
        assert ExtractionConfig(multi_pass_extraction=False).processing_method == "Single-pass Analysis"

    def test_transaction_to_dict(self):
        """Test serialization of a transaction."""
        data = make_transaction(0.9, reference="REF9").to_dict()

        assert data["date"] == "2024-01-15"
        assert data["amount"] == 100.0
        assert data["type"] == "debit"
        assert data["balance"] is None
        assert data["reference"] == "REF9"
