import pytest

from codepulse.engine import aggregate, analyze
from codepulse.engine.aggregator import MAX_RECOMMENDATIONS
from codepulse.engine.corpus import FileRecord
from codepulse.errors import AggregationError
from codepulse.schemas import ISSUE_CATEGORIES, Category, Finding


def finding(category: Category, message: str, triggered: bool = True, weight: int = 1) -> Finding:
    return Finding(
        rule_id=f"test.{category.value}.{message}",
        category=category,
        message=message,
        triggered=triggered,
        occurrence_count=1 if triggered else 0,
        weight=weight,
    )


def test_scenario_eval_in_single_file():
    corpus = [FileRecord(path="app.js", name="app.js", extension=".js", content="eval(x)\n")]

    result = aggregate(analyze(corpus, "default"))

    security = result.per_category[Category.SECURITY]
    assert "Use of eval or exec style dynamic code execution" in security.issues
    assert security.score == 88
    assert result.weaknesses == ["Insufficient comments in the code"]
    assert result.score == 100 - 8 - 5
    assert result.recommendations[0] == "To improve security: address Use of eval or exec style dynamic code execution"


def test_scenario_empty_corpus():
    result = aggregate(analyze([], "default"))

    assert result.score == 100
    assert result.strengths == []
    assert result.weaknesses == []
    assert result.recommendations == []
    assert set(result.per_category) == set(ISSUE_CATEGORIES)
    assert all(report.score == 100 and report.issues == [] for report in result.per_category.values())


def test_untriggered_findings_are_ignored():
    result = aggregate([finding(Category.SECURITY, "x", triggered=False)])

    assert result.score == 100
    assert result.per_category[Category.SECURITY].issues == []


def test_strength_bonus_is_capped():
    result = aggregate([finding(Category.STRENGTH, f"s{i}") for i in range(10)])

    assert result.score == 100
    assert len(result.strengths) == 10


def test_strengths_offset_penalties():
    result = aggregate([
        finding(Category.STRENGTH, "tests"),
        finding(Category.STRENGTH, "docs"),
        finding(Category.MEMORY, "leak"),
    ])

    assert result.score == 100 + 8 - 7
    assert result.per_category[Category.MEMORY].score == 90


def test_weight_multiplies_penalty():
    result = aggregate([finding(Category.SECURITY, "secrets", weight=2)])

    assert result.score == 100 - 16
    assert result.per_category[Category.SECURITY].score == 76


def test_scores_are_clamped():
    result = aggregate([finding(Category.SECURITY, f"issue {i}") for i in range(20)])

    assert result.score == 0
    assert result.per_category[Category.SECURITY].score == 0


def test_recommendations_ranked_deduplicated_and_capped():
    findings = (
        [finding(Category.WEAKNESS, "w")]
        + [finding(Category.PERFORMANCE, f"p{i}") for i in range(6)]
        + [finding(Category.SECURITY, f"s{i}") for i in range(6)]
        + [finding(Category.SECURITY, "s0")]
    )

    recommendations = aggregate(findings).recommendations

    assert len(recommendations) == MAX_RECOMMENDATIONS
    assert len(set(recommendations)) == len(recommendations)
    assert recommendations[:6] == [f"To improve security: address s{i}" for i in range(6)]
    assert recommendations[6] == "To improve performance: address p0"
    assert "Improve: w" not in recommendations


def test_aggregate_is_idempotent():
    findings = [finding(Category.BATTERY, "gps"), finding(Category.WEAKNESS, "style")]

    assert aggregate(findings) == aggregate(findings)


def test_invalid_category_raises():
    bogus = Finding.model_construct(
        rule_id="bogus", category="bogus", message="m", triggered=True, occurrence_count=1, weight=1
    )

    with pytest.raises(AggregationError):
        aggregate([bogus])
