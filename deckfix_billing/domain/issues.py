"""Turn raw slide feedback and recommendations into scored issues"""

from typing import Iterable, List, Optional

from deckfix_billing.domain.complexity import (
    DEFAULT_SCORING_CONFIG,
    PLACEHOLDER_ISSUE,
    ScoringConfig,
    estimate_complexity,
)
from deckfix_billing.domain.models import ComplexityResult, Issue, Severity

# Checked in order; first keyword hit wins
SEVERITY_KEYWORDS = (
    (Severity.CRITICAL, ("critical", "major")),
    (Severity.HIGH, ("important", "significant")),
    (Severity.LOW, ("minor",)),
)


def classify_feedback_line(line: str) -> Severity:
    """
    Classify one line of reviewer feedback by keyword.

    Matching is on the lower-cased line, so "MAJOR gap" is critical.
    Lines without a keyword default to medium.
    """
    lowered = line.lower()
    for severity, keywords in SEVERITY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return severity
    return Severity.MEDIUM


def issues_from_feedback(feedback: Optional[str]) -> List[Issue]:
    if not feedback:
        return []
    return [
        Issue(category="feedback", severity=classify_feedback_line(line), description=line)
        for line in feedback.split("\n")
        if line.strip()
    ]


def issues_from_recommendations(recommendations: Optional[Iterable[str]]) -> List[Issue]:
    if not recommendations:
        return []
    return [
        Issue(category="recommendation", severity=Severity.MEDIUM, description=rec)
        for rec in recommendations
    ]


def normalize_issues(
    feedback: Optional[str],
    recommendations: Optional[Iterable[str]],
) -> List[Issue]:
    """Feedback issues then recommendation issues; never empty"""
    issues = issues_from_feedback(feedback) + issues_from_recommendations(recommendations)
    if not issues:
        issues.append(PLACEHOLDER_ISSUE)
    return issues


def estimate_fix_cost(
    slide_content: Optional[str],
    slide_feedback: Optional[str],
    slide_recommendations: Optional[Iterable[str]],
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> ComplexityResult:
    """Normalize a slide's review output and price the fix"""
    issues = normalize_issues(slide_feedback, slide_recommendations)
    return estimate_complexity(slide_content or "", issues, config)
