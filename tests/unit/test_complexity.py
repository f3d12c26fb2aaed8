"""Unit tests for fix complexity scoring"""

import pytest
from dataclasses import FrozenInstanceError
from itertools import product
from deckfix_billing.domain.models import ComplexityLevel, Issue, Severity
from deckfix_billing.domain.complexity import (
    DEFAULT_SCORING_CONFIG,
    ScoringConfig,
    calculate_fix_scope_score,
    calculate_issue_count_score,
    calculate_severity_score,
    calculate_content_length_score,
    calculate_total_score,
    determine_complexity_level,
    estimate_complexity,
    map_score_to_credit_cost,
)

SEVERITY_ORDER = [Severity.LOW, Severity.MEDIUM, Severity.HIGH, Severity.CRITICAL]


def words(count: int) -> str:
    return " ".join(["word"] * count)


def feedback_issues(*severities: Severity) -> list[Issue]:
    return [Issue(category="feedback", severity=s, description="note") for s in severities]


def test_single_critical_issue_on_short_slide():
    """60 words, one critical issue -> 10/50/15/60, total 33"""
    result = estimate_complexity(words(60), feedback_issues(Severity.CRITICAL))

    assert result.breakdown.issue_count_score == 10
    assert result.breakdown.severity_score == 50
    assert result.breakdown.content_length_score == 15
    assert result.breakdown.fix_scope_score == 60
    assert result.complexity_score == 33
    assert result.credit_cost == 3
    assert result.complexity_level == ComplexityLevel.LOW
    assert result.explanation == "1 issue to fix, critical severity, major rewrite needed"


def test_many_medium_issues_on_long_slide():
    """6 medium issues, 250 words -> 80/15/50/30; 44.5 rounds up to 45"""
    result = estimate_complexity(words(250), feedback_issues(*[Severity.MEDIUM] * 6))

    assert result.breakdown.issue_count_score == 80
    assert result.breakdown.severity_score == 15
    assert result.breakdown.content_length_score == 50
    assert result.breakdown.fix_scope_score == 30
    assert result.complexity_score == 45
    assert result.credit_cost == 4
    assert result.complexity_level == ComplexityLevel.MEDIUM
    assert result.explanation == "6 issues to fix, medium severity, long content, moderate changes"


def test_no_issues_and_empty_text_is_low_complexity():
    """Empty input is priced as one low-severity placeholder issue"""
    result = estimate_complexity("", [])

    assert result.breakdown.issue_count_score == 10
    assert result.breakdown.severity_score == 5
    assert result.breakdown.content_length_score == 5
    assert result.breakdown.fix_scope_score == 10
    # 3 + 1.5 + 1 + 2 = 7.5 -> 8
    assert result.complexity_score == 8
    assert result.credit_cost == 2
    assert result.complexity_level == ComplexityLevel.LOW
    assert result.explanation == "1 issue to fix, low severity"


def test_none_text_is_treated_as_empty():
    assert estimate_complexity(None, []) == estimate_complexity("", [])


def test_identical_inputs_give_identical_results():
    issues = feedback_issues(Severity.HIGH, Severity.LOW, Severity.MEDIUM)
    assert estimate_complexity(words(120), issues) == estimate_complexity(words(120), issues)


@pytest.mark.parametrize(
    "count,expected",
    [(1, 10), (2, 25), (3, 25), (4, 50), (5, 50), (6, 80), (25, 80)],
)
def test_issue_count_score_steps(count, expected):
    assert calculate_issue_count_score(count) == expected


@pytest.mark.parametrize(
    "word_count,expected",
    [(0, 5), (50, 5), (51, 15), (100, 15), (101, 30), (200, 30), (201, 50)],
)
def test_content_length_score_buckets(word_count, expected):
    assert calculate_content_length_score(words(word_count)) == expected


def test_content_length_counts_any_whitespace():
    assert calculate_content_length_score("  one\ttwo\nthree  ") == 5
    assert calculate_content_length_score("\n".join(["w"] * 51)) == 15


def test_severity_score_is_mean_of_points():
    assert calculate_severity_score(feedback_issues(Severity.LOW, Severity.CRITICAL)) == 27.5
    assert calculate_severity_score(feedback_issues(*[Severity.CRITICAL] * 4)) == 50


def test_whole_severity_mean_is_an_int():
    assert isinstance(calculate_severity_score(feedback_issues(Severity.MEDIUM, Severity.MEDIUM)), int)
    assert isinstance(calculate_severity_score(feedback_issues(Severity.LOW, Severity.CRITICAL)), float)


def test_fix_scope_high_severity_needs_four_issues():
    assert calculate_fix_scope_score(feedback_issues(Severity.HIGH, Severity.LOW, Severity.LOW), "") == 10
    assert calculate_fix_scope_score(
        feedback_issues(Severity.HIGH, Severity.LOW, Severity.LOW, Severity.LOW), ""
    ) == 60


@pytest.mark.parametrize("category", ["structure", "logic", "narrative-flow", "slide_structure_issue"])
def test_fix_scope_structural_categories(category):
    issues = [Issue(category=category, severity=Severity.LOW)]
    assert calculate_fix_scope_score(issues, "short") == 60


def test_fix_scope_keyword_match_is_case_sensitive():
    issues = [Issue(category="Logic", severity=Severity.LOW)]
    assert calculate_fix_scope_score(issues, "short") == 10


def test_fix_scope_moderate_needs_three_issues_and_long_text():
    issues = feedback_issues(Severity.MEDIUM, Severity.MEDIUM, Severity.MEDIUM)
    assert calculate_fix_scope_score(issues, words(101)) == 30
    assert calculate_fix_scope_score(issues, words(100)) == 10
    assert calculate_fix_scope_score(issues[:2], words(300)) == 10


def test_total_score_rounds_half_up():
    # 7.5 + 8.25 + 1 + 12 = 28.75
    assert calculate_total_score(25, 27.5, 5, 60) == 29
    # 3 + 1.5 + 1 + 2 = 7.5
    assert calculate_total_score(10, 5, 5, 10) == 8


@pytest.mark.parametrize(
    "score,credits",
    [
        (0, 2), (20, 2), (21, 3), (35, 3), (36, 4), (50, 4),
        (51, 6), (65, 6), (66, 8), (80, 8), (81, 10), (100, 10),
    ],
)
def test_credit_cost_bands(score, credits):
    assert map_score_to_credit_cost(score) == credits


@pytest.mark.parametrize(
    "score,level",
    [
        (0, ComplexityLevel.LOW),
        (35, ComplexityLevel.LOW),
        (36, ComplexityLevel.MEDIUM),
        (65, ComplexityLevel.MEDIUM),
        (66, ComplexityLevel.HIGH),
        (100, ComplexityLevel.HIGH),
    ],
)
def test_complexity_level_thresholds(score, level):
    assert determine_complexity_level(score) == level


def test_credit_cost_never_decreases_with_score():
    costs = [map_score_to_credit_cost(score) for score in range(0, 101)]
    assert costs == sorted(costs)


def test_results_stay_within_bounds():
    for count, severity, word_count in product(range(0, 9), SEVERITY_ORDER, (0, 60, 150, 400)):
        issues = [Issue(category="structure", severity=severity)] * count
        result = estimate_complexity(words(word_count), issues)
        assert 0 <= result.complexity_score <= 100
        assert 2 <= result.credit_cost <= 10


def test_raising_a_severity_never_lowers_the_score():
    for severities in product(SEVERITY_ORDER, repeat=3):
        for word_count in (10, 150):
            base = estimate_complexity(words(word_count), feedback_issues(*severities))
            for index, severity in enumerate(severities):
                for higher in SEVERITY_ORDER[SEVERITY_ORDER.index(severity) + 1:]:
                    bumped = list(severities)
                    bumped[index] = higher
                    result = estimate_complexity(words(word_count), feedback_issues(*bumped))
                    assert result.complexity_score >= base.complexity_score


def test_dominant_severity_in_explanation():
    result = estimate_complexity("", feedback_issues(Severity.LOW, Severity.HIGH, Severity.MEDIUM))
    assert result.explanation == "3 issues to fix, high severity"


def test_moderate_content_qualifier():
    result = estimate_complexity(words(150), feedback_issues(Severity.LOW))
    assert "moderate content" in result.explanation
    assert "long content" not in result.explanation


def test_alternate_config_changes_pricing():
    config = ScoringConfig(min_credits=3, cost_bands=((50, 1),), cost_overflow=12, max_credits=9)

    assert estimate_complexity("", [], config).credit_cost == 3
    assert map_score_to_credit_cost(90, config) == 9
    # The default config is untouched
    assert estimate_complexity("", []).credit_cost == 2


def test_default_config_is_immutable():
    with pytest.raises(FrozenInstanceError):
        DEFAULT_SCORING_CONFIG.min_credits = 0

    with pytest.raises(TypeError):
        DEFAULT_SCORING_CONFIG.severity_points[Severity.LOW] = 0


def test_config_is_hashable():
    assert hash(DEFAULT_SCORING_CONFIG) == hash(ScoringConfig())
    assert {DEFAULT_SCORING_CONFIG: "default"}[ScoringConfig()] == "default"
    assert ScoringConfig(min_credits=1) != DEFAULT_SCORING_CONFIG
