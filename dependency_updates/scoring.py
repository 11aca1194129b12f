"""
Priority (urgency) and risk (danger) scoring of available updates.

Each rule is a pure function of a record returning ``(delta, reason)`` or
None. Rules are evaluated in registration order, so the reason lists are
deterministic.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Iterable, List, NamedTuple, Optional, Tuple

from .compatibility import ChangeKind, classify_change
from .models import DependencyRecord


logger = logging.getLogger(__name__)

Rule = Callable[[DependencyRecord], Optional[Tuple[int, str]]]

VERSION_CHANGE_POINTS = {
    ChangeKind.MAJOR: (10, "MAJOR version change"),
    ChangeKind.MINOR: (3, "MINOR version change"),
    ChangeKind.PATCH: (1, "PATCH version change"),
}
VULNERABILITY_POINTS = 30
WARNING_POINTS = 20
BUILD_SCRIPT_POINTS = 10


class Score(NamedTuple):
    priority_score: int
    priority_reasons: Tuple[str, ...]
    risk_score: int
    risk_reasons: Tuple[str, ...]


EMPTY_SCORE = Score(0, (), 0, ())


def version_change_rule(record: DependencyRecord) -> Optional[Tuple[int, str]]:
    kind = classify_change(record.version, record.update.latest)
    return VERSION_CHANGE_POINTS.get(kind)


def vulnerability_rule(record: DependencyRecord) -> Optional[Tuple[int, str]]:
    if record.vulnerabilities:
        return VULNERABILITY_POINTS, "RUSTSEC vulnerability associated"
    return None


def warning_rule(record: DependencyRecord) -> Optional[Tuple[int, str]]:
    if record.warnings:
        return WARNING_POINTS, "RUSTSEC warning associated"
    return None


def build_script_rule(record: DependencyRecord) -> Optional[Tuple[int, str]]:
    if record.update.build_script_changed:
        scripts = ", ".join(record.update.build_scripts) or "build script"
        return BUILD_SCRIPT_POINTS, f"{scripts} file changed"
    return None


PRIORITY_RULES: Tuple[Rule, ...] = (version_change_rule, vulnerability_rule, warning_rule)
RISK_RULES: Tuple[Rule, ...] = (build_script_rule,)


def _fold(rules: Iterable[Rule], record: DependencyRecord) -> Tuple[int, Tuple[str, ...]]:
    total = 0
    reasons: List[str] = []
    for rule in rules:
        outcome = rule(record)
        if outcome is None:
            continue
        delta, reason = outcome
        total += delta
        reasons.append(reason)
    return total, tuple(reasons)


class ScoringEngine:
    """Score records that have an update candidate."""

    def __init__(
        self,
        priority_rules: Iterable[Rule] = PRIORITY_RULES,
        risk_rules: Iterable[Rule] = RISK_RULES,
    ) -> None:
        self.priority_rules: List[Rule] = list(priority_rules)
        self.risk_rules: List[Rule] = list(risk_rules)

    def register_priority_rule(self, rule: Rule) -> None:
        self.priority_rules.append(rule)

    def register_risk_rule(self, rule: Rule) -> None:
        self.risk_rules.append(rule)

    def score(self, record: DependencyRecord) -> Score:
        """Compute priority and risk for a record.

        Records without an update candidate are not scored.
        """
        if record.update is None:
            return EMPTY_SCORE
        priority_score, priority_reasons = _fold(self.priority_rules, record)
        risk_score, risk_reasons = _fold(self.risk_rules, record)
        return Score(priority_score, priority_reasons, risk_score, risk_reasons)

    def apply(self, record: DependencyRecord) -> DependencyRecord:
        """Return the record with its scored fields filled in."""
        score = self.score(record)
        return replace(
            record,
            priority_score=score.priority_score,
            priority_reasons=score.priority_reasons,
            risk_score=score.risk_score,
            risk_reasons=score.risk_reasons,
        )

    def apply_all(self, records: Iterable[DependencyRecord]) -> Tuple[DependencyRecord, ...]:
        scored = tuple(self.apply(record) for record in records)
        logger.info("Scored %d dependencies", sum(1 for r in scored if r.update is not None))
        return scored
