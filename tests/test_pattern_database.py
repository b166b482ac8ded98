import pytest

from movecheck.pattern_database import PatternDatabase, PatternType, RiskLevel


@pytest.fixture
def db():
    return PatternDatabase()


@pytest.mark.parametrize(
    "pattern_type, text",
    [
        (PatternType.RESOURCE_LEAK, "create_project"),
        (PatternType.UNSAFE_TRANSFER, "transfer::public_transfer"),
        (PatternType.MISSING_CHECK, "verify_signature"),
        (PatternType.EXTERNAL_CALL_IN_LOOP, "while (i < n)"),
        (PatternType.UNAUTHORIZED_ACCESS, "project_owner_cap"),
    ],
)
def test_matches(db, pattern_type, text):
    assert db.matches_pattern(pattern_type, text) is True


def test_no_match(db):
    assert db.matches_pattern(PatternType.UNAUTHORIZED_ACCESS, "balance::join") is False


def test_empty_text_never_matches(db):
    assert not any(db.matches_pattern(pt, "") for pt in PatternType)


def test_missing_patterns_do_not_match(db):
    db.patterns.pop(PatternType.UNSAFE_TRANSFER)
    assert db.matches_pattern(PatternType.UNSAFE_TRANSFER, "transfer") is False


@pytest.mark.parametrize(
    "pattern_type, level",
    [
        (PatternType.RESOURCE_LEAK, RiskLevel.CRITICAL),
        (PatternType.UNSAFE_TRANSFER, RiskLevel.HIGH),
        (PatternType.MISSING_CHECK, RiskLevel.HIGH),
        (PatternType.EXTERNAL_CALL_IN_LOOP, RiskLevel.MEDIUM),
        (PatternType.UNAUTHORIZED_ACCESS, RiskLevel.CRITICAL),
    ],
)
def test_risk_levels(db, pattern_type, level):
    assert db.get_risk_level(pattern_type) is level