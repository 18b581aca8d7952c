"""
Score & Recommendation Aggregator for CodePulse

Turns raw findings into the composite score, per-category scores and the
ranked recommendation list. Pure: identical findings give identical results.

Scoring:
- Composite: 100 + min(4*S, 20) - 5*W - 6*P - 7*M - 6*B - 8*Sec, clamped to 0-100
- Category:  100 - 10*n (performance, memory, battery), 100 - 12*n (security)
Counts are weighted (a weight-2 finding counts twice).
"""

import logging

from ..errors import AggregationError
from ..schemas import ISSUE_CATEGORIES, AnalysisResult, Category, CategoryReport, Finding

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

BASE_SCORE = 100
STRENGTH_BONUS = 4
MAX_STRENGTH_BONUS = 20

# Composite penalty per (weighted) issue
PENALTIES = {
    Category.WEAKNESS: 5,
    Category.PERFORMANCE: 6,
    Category.MEMORY: 7,
    Category.BATTERY: 6,
    Category.SECURITY: 8,
}

# Category score penalty per (weighted) issue
CATEGORY_PENALTIES = {
    Category.PERFORMANCE: 10,
    Category.MEMORY: 10,
    Category.BATTERY: 10,
    Category.SECURITY: 12,
}

# Higher = more urgent
PRIORITIES = {
    Category.WEAKNESS: 1,
    Category.PERFORMANCE: 2,
    Category.MEMORY: 2,
    Category.BATTERY: 2,
    Category.SECURITY: 3,
}

TEMPLATES = {
    Category.WEAKNESS: "Improve: {message}",
    Category.PERFORMANCE: "To improve performance: address {message}",
    Category.MEMORY: "To reduce memory usage: address {message}",
    Category.BATTERY: "To improve battery life: address {message}",
    Category.SECURITY: "To improve security: address {message}",
}

MAX_RECOMMENDATIONS = 10


def _clamp(value: int, low: int = 0, high: int = 100) -> int:
    return max(low, min(high, value))


def _validate(findings: list[Finding]) -> None:
    for finding in findings:
        if not isinstance(finding.category, Category):
            logger.error(f"Finding {finding.rule_id} has invalid category {finding.category!r}")
            raise AggregationError(f"Finding {finding.rule_id} has invalid category {finding.category!r}")


def _recommendations(triggered: list[Finding]) -> list[str]:
    issues = [finding for finding in triggered if finding.category != Category.STRENGTH]
    # sorted() is stable: equal priorities keep discovery order
    ranked = sorted(issues, key=lambda finding: PRIORITIES[finding.category], reverse=True)

    recommendations: list[str] = []
    seen: set[str] = set()
    for finding in ranked:
        text = TEMPLATES[finding.category].format(message=finding.message)
        if text in seen:
            continue
        seen.add(text)
        recommendations.append(text)
        if len(recommendations) == MAX_RECOMMENDATIONS:
            break
    return recommendations


def aggregate(findings: list[Finding]) -> AnalysisResult:
    """
    Aggregate findings into an AnalysisResult.

    Raises:
        AggregationError: a finding carries a category outside the enum
    """
    _validate(findings)
    triggered = [finding for finding in findings if finding.triggered]

    counts = {category: 0 for category in Category}
    messages: dict[Category, list[str]] = {category: [] for category in Category}
    for finding in triggered:
        counts[finding.category] += finding.weight
        messages[finding.category].append(finding.message)

    score = BASE_SCORE + min(STRENGTH_BONUS * counts[Category.STRENGTH], MAX_STRENGTH_BONUS)
    for category, penalty in PENALTIES.items():
        score -= penalty * counts[category]

    per_category = {
        category: CategoryReport(
            score=_clamp(BASE_SCORE - CATEGORY_PENALTIES[category] * counts[category]),
            issues=messages[category],
        )
        for category in ISSUE_CATEGORIES
    }

    return AnalysisResult(
        score=_clamp(score),
        strengths=messages[Category.STRENGTH],
        weaknesses=messages[Category.WEAKNESS],
        per_category=per_category,
        recommendations=_recommendations(triggered),
    )
