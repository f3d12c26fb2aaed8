"""Fix complexity scoring engine - prices a slide fix in credits"""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from types import MappingProxyType
from typing import List, Mapping, Optional, Sequence, Tuple, Union

from deckfix_billing.domain.models import (
    ComplexityBreakdown,
    ComplexityLevel,
    ComplexityResult,
    Issue,
    Severity,
)

# (upper bound inclusive, value); anything above the last bound gets the overflow value
Bands = Tuple[Tuple[int, int], ...]


@dataclass(frozen=True)
class ScoringConfig:
    """
    Weights, bands and thresholds for complexity scoring.

    The defaults are the production pricing. Changing any of them changes what
    users are charged, so alternate configs are meant for experiments and tests.
    """

    issue_count_weight: Decimal = Decimal("0.3")
    severity_weight: Decimal = Decimal("0.3")
    content_length_weight: Decimal = Decimal("0.2")
    fix_scope_weight: Decimal = Decimal("0.2")

    # 1 issue -> 10, 2-3 -> 25, 4-5 -> 50, 6+ -> 80
    issue_count_bands: Bands = ((1, 10), (3, 25), (5, 50))
    issue_count_overflow: int = 80

    # Mapping proxies are unhashable, so this field stays out of __hash__
    severity_points: Mapping[Severity, int] = field(
        default_factory=lambda: MappingProxyType(
            {
                Severity.LOW: 5,
                Severity.MEDIUM: 15,
                Severity.HIGH: 30,
                Severity.CRITICAL: 50,
            }
        ),
        hash=False,
    )
    max_severity_score: int = 50

    # Word count buckets
    content_length_bands: Bands = ((50, 5), (100, 15), (200, 30))
    content_length_overflow: int = 50

    structural_keywords: Tuple[str, ...] = ("structure", "logic", "flow")
    major_scope_score: int = 60
    moderate_scope_score: int = 30
    minor_scope_score: int = 10
    high_severity_issue_threshold: int = 4
    moderate_scope_issue_threshold: int = 3
    moderate_scope_word_threshold: int = 100

    max_score: int = 100

    # Score bands -> credits: 0-20, 21-35, 36-50, 51-65, 66-80, 81-100
    cost_bands: Bands = ((20, 2), (35, 3), (50, 4), (65, 6), (80, 8))
    cost_overflow: int = 10
    min_credits: int = 2
    max_credits: int = 10

    # Level thresholds are separate from the cost bands on purpose
    low_level_max: int = 35
    medium_level_max: int = 65

    long_content_words: int = 200
    moderate_content_words: int = 100


DEFAULT_SCORING_CONFIG = ScoringConfig()

PLACEHOLDER_ISSUE = Issue(
    category="improvement",
    severity=Severity.LOW,
    description="General improvement needed",
)


def _bucket(value: int, bands: Bands, overflow: int) -> int:
    for upper, score in bands:
        if value <= upper:
            return score
    return overflow


def count_words(text: Optional[str]) -> int:
    return len((text or "").split())


def calculate_issue_count_score(issue_count: int, config: ScoringConfig = DEFAULT_SCORING_CONFIG) -> int:
    return _bucket(issue_count, config.issue_count_bands, config.issue_count_overflow)


def calculate_severity_score(
    issues: Sequence[Issue],
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> Union[int, float]:
    """
    Mean severity points across issues, capped.

    The mean keeps issue count from being counted twice: volume already has
    its own sub-score.
    """
    if not issues:
        return 0
    low_points = config.severity_points[Severity.LOW]
    total = sum(config.severity_points.get(issue.severity, low_points) for issue in issues)
    mean = min(total / len(issues), config.max_severity_score)
    # Whole means are ints: 50, not 50.0
    return int(mean) if float(mean).is_integer() else mean


def calculate_content_length_score(text: Optional[str], config: ScoringConfig = DEFAULT_SCORING_CONFIG) -> int:
    return _bucket(count_words(text), config.content_length_bands, config.content_length_overflow)


def has_structural_issue(issues: Sequence[Issue], config: ScoringConfig = DEFAULT_SCORING_CONFIG) -> bool:
    # Case-sensitive substring match on the category tag
    return any(
        keyword in issue.category
        for issue in issues
        for keyword in config.structural_keywords
    )


def calculate_fix_scope_score(
    issues: Sequence[Issue],
    text: Optional[str],
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> int:
    """
    Estimate how invasive the fix is.

    Structural rewrites cost more than their count or severity alone suggests:
    - major: any critical issue, a high issue among many, or a structural category
    - moderate: several issues on a long slide
    - minor: everything else
    """
    issue_count = len(issues)
    word_count = count_words(text)

    has_critical = any(i.severity == Severity.CRITICAL for i in issues)
    has_high = any(i.severity == Severity.HIGH for i in issues)

    if (
        has_critical
        or (has_high and issue_count >= config.high_severity_issue_threshold)
        or has_structural_issue(issues, config)
    ):
        return config.major_scope_score

    if (
        issue_count >= config.moderate_scope_issue_threshold
        and word_count > config.moderate_scope_word_threshold
    ):
        return config.moderate_scope_score

    return config.minor_scope_score


def calculate_total_score(
    issue_count_score: int,
    severity_score: float,
    content_length_score: int,
    fix_scope_score: int,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> int:
    """Weighted sum rounded half up (44.5 -> 45), capped at max_score"""
    weighted = (
        Decimal(str(issue_count_score)) * config.issue_count_weight
        + Decimal(str(severity_score)) * config.severity_weight
        + Decimal(str(content_length_score)) * config.content_length_weight
        + Decimal(str(fix_scope_score)) * config.fix_scope_weight
    )
    rounded = int(weighted.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return min(rounded, config.max_score)


def map_score_to_credit_cost(score: int, config: ScoringConfig = DEFAULT_SCORING_CONFIG) -> int:
    """Bucket a score into credits, clamped to [min_credits, max_credits]"""
    cost = _bucket(score, config.cost_bands, config.cost_overflow)
    return max(config.min_credits, min(config.max_credits, cost))


def determine_complexity_level(score: int, config: ScoringConfig = DEFAULT_SCORING_CONFIG) -> ComplexityLevel:
    if score <= config.low_level_max:
        return ComplexityLevel.LOW
    elif score <= config.medium_level_max:
        return ComplexityLevel.MEDIUM
    else:
        return ComplexityLevel.HIGH


def dominant_severity(issues: Sequence[Issue]) -> Severity:
    for severity in (Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM):
        if any(i.severity == severity for i in issues):
            return severity
    return Severity.LOW


def generate_explanation(
    breakdown: ComplexityBreakdown,
    issues: Sequence[Issue],
    text: Optional[str],
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> str:
    """
    Short human summary, e.g. "3 issues to fix, high severity, moderate changes".
    """
    parts: List[str] = []
    issue_count = len(issues)
    word_count = count_words(text)

    if issue_count == 1:
        parts.append("1 issue to fix")
    else:
        parts.append(f"{issue_count} issues to fix")

    parts.append(f"{dominant_severity(issues).value} severity")

    if word_count > config.long_content_words:
        parts.append("long content")
    elif word_count > config.moderate_content_words:
        parts.append("moderate content")

    if breakdown.fix_scope_score >= config.major_scope_score:
        parts.append("major rewrite needed")
    elif breakdown.fix_scope_score >= config.moderate_scope_score:
        parts.append("moderate changes")

    return ", ".join(parts)


def estimate_complexity(
    slide_text: Optional[str],
    issues: Sequence[Issue],
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> ComplexityResult:
    """
    Main entry point: score a slide fix and price it in credits.

    An empty issue list is scored as the single low-severity placeholder so
    the result is always a valid low-complexity estimate.
    """
    issues = list(issues) or [PLACEHOLDER_ISSUE]
    text = slide_text or ""

    issue_count_score = calculate_issue_count_score(len(issues), config)
    severity_score = calculate_severity_score(issues, config)
    content_length_score = calculate_content_length_score(text, config)
    fix_scope_score = calculate_fix_scope_score(issues, text, config)

    total_score = calculate_total_score(
        issue_count_score,
        severity_score,
        content_length_score,
        fix_scope_score,
        config,
    )

    breakdown = ComplexityBreakdown(
        issue_count_score=issue_count_score,
        severity_score=severity_score,
        content_length_score=content_length_score,
        fix_scope_score=fix_scope_score,
        total_score=total_score,
    )

    return ComplexityResult(
        complexity_score=total_score,
        credit_cost=map_score_to_credit_cost(total_score, config),
        complexity_level=determine_complexity_level(total_score, config),
        breakdown=breakdown,
        explanation=generate_explanation(breakdown, issues, text, config),
        issue_count=len(issues),
    )
