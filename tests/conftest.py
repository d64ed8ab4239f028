"""
Pytest configuration and fixtures.
"""
from typing import Generator, List

import pytest
from fastapi.testclient import TestClient

from passbook.engine import StatementRecord, interpret_statement
from passbook.main import app


SBI_TEXT = """\
State Bank of India
Account Holder: RAHUL SHARMA
Account Number: 30012345678
Statement Period: 01/02/2024 to 29/02/2024
01/02/2024 SALARY CREDIT XYZ CORP 50,000.00 CR 1,50,000.00
10/02/2024 NEFT REF: N240210 12,000.00 DR 1,38,000.00
"""

AXIS_TEXT = """\
Axis Bank Ltd
A/C: 91702003456
15/03/2024 UPI PAYMENT SWIGGY 450.00 DR 9,550.00
"""


@pytest.fixture(scope="function")
def client() -> Generator[TestClient, None, None]:
    """Create a test client for the API."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def sbi_text() -> str:
    return SBI_TEXT


@pytest.fixture
def records() -> List[StatementRecord]:
    """Two interpreted statements from different banks."""
    return [
        interpret_statement(SBI_TEXT, "sbi_feb.pdf"),
        interpret_statement(AXIS_TEXT, "axis_mar.pdf"),
    ]


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset global singleton instances before each test for proper isolation."""
    import passbook.engine.assembler as assembler_module
    import passbook.engine.bank_profiles as bank_profiles_module
    from passbook.config import get_settings

    assembler_module._assembler_instance = None
    bank_profiles_module._registry_instance = None
    get_settings.cache_clear()

    yield

    assembler_module._assembler_instance = None
    bank_profiles_module._registry_instance = None
    get_settings.cache_clear()
