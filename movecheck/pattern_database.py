"""Keyword patterns that hint at risky code, with a risk level for each kind."""

from __future__ import annotations

from enum import Enum


class PatternType(Enum):
    RESOURCE_LEAK = "resource_leak"
    UNSAFE_TRANSFER = "unsafe_transfer"
    MISSING_CHECK = "missing_check"
    EXTERNAL_CALL_IN_LOOP = "external_call_in_loop"
    UNAUTHORIZED_ACCESS = "unauthorized_access"


class RiskLevel(Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


_RISK_LEVELS = {
    PatternType.RESOURCE_LEAK: RiskLevel.CRITICAL,
    PatternType.UNSAFE_TRANSFER: RiskLevel.HIGH,
    PatternType.MISSING_CHECK: RiskLevel.HIGH,
    PatternType.EXTERNAL_CALL_IN_LOOP: RiskLevel.MEDIUM,
    PatternType.UNAUTHORIZED_ACCESS: RiskLevel.CRITICAL,
}


class PatternDatabase:
    """Substring patterns grouped by the kind of risk they indicate."""

    def __init__(self) -> None:
        self.patterns: dict[PatternType, list[str]] = {
            PatternType.RESOURCE_LEAK: ["init", "create", "store"],
            PatternType.UNSAFE_TRANSFER: ["transfer", "send", "move"],
            PatternType.MISSING_CHECK: ["assert", "verify", "check"],
            PatternType.EXTERNAL_CALL_IN_LOOP: ["while", "for", "loop"],
            PatternType.UNAUTHORIZED_ACCESS: ["admin", "owner", "capability"],
        }

    def matches_pattern(self, pattern_type: PatternType, text: str) -> bool:
        """True if any pattern of the given kind occurs in ``text``."""
        return any(pattern in text for pattern in self.patterns.get(pattern_type, ()))

    def get_risk_level(self, pattern_type: PatternType) -> RiskLevel:
        return _RISK_LEVELS[pattern_type]