"""Issue aggregation engine: grouping, severity counts, health score and recommendations.

Every function here is a pure transform over an in-memory issue list with
no I/O or shared mutable state, so callers may run them concurrently.
"""

import logging
import math
from typing import Any, Iterable, Mapping, Optional

from techseo.modules.technical_audit.issues import (
    SEVERITIES,
    SEVERITY_RANK,
    AggregationResult,
    IssueGroup,
    RecommendationGroup,
    TechnicalIssue,
    coerce_issues,
)
from techseo.modules.technical_audit.knowledge import (
    category_recommendations_for_types,
    format_issue_type,
    get_recommendations_for_type,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Scoring configuration
# ---------------------------------------------------------------------------

SEVERITY_WEIGHTS: dict[str, float] = {
    "high": 5.0,
    "medium": 2.0,
    "low": 0.5,
}

MAX_SCORE = 100
MIN_SCORE = 0

DEFAULT_MAX_AFFECTED_URLS = 3

SEVERITY_POLICIES = ("first_seen", "max")

_GRADE_MAP = [
    (90, "A"),
    (80, "B"),
    (70, "C"),
    (60, "D"),
    (0, "F"),
]


def grade_for(score: float) -> str:
    for threshold, letter in _GRADE_MAP:
        if score >= threshold:
            return letter
    return "F"


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


# ---------------------------------------------------------------------------
# Grouping
# ---------------------------------------------------------------------------

def group_by_type(
    issues: Optional[Iterable[Any]],
    severity_policy: str = "first_seen",
) -> dict[str, IssueGroup]:
    """Group issues by ``issue_type`` in first-seen order.

    The group's severity is the first member's severity.  With
    ``severity_policy="max"`` it escalates to the most severe recognized
    severity seen in the group instead.
    """
    if severity_policy not in SEVERITY_POLICIES:
        raise ValueError(
            f"Unknown severity policy: {severity_policy!r}. "
            f"Use one of: {', '.join(SEVERITY_POLICIES)}"
        )

    groups: dict[str, IssueGroup] = {}
    for issue in coerce_issues(issues):
        group = groups.get(issue.issue_type)
        if group is None:
            group = IssueGroup(
                issue_type=issue.issue_type,
                title=format_issue_type(issue.issue_type),
                description=issue.summary,
                severity=issue.severity,
            )
            groups[issue.issue_type] = group
        elif severity_policy == "max" and (
            SEVERITY_RANK.get(issue.severity, 0) > SEVERITY_RANK.get(group.severity, 0)
        ):
            group.severity = issue.severity

        group.count += 1
        if issue.page_url and issue.page_url not in group.affected_urls:
            group.affected_urls.append(issue.page_url)
    return groups


# ---------------------------------------------------------------------------
# Severity counting & scoring
# ---------------------------------------------------------------------------

def count_by_severity(issues: Optional[Iterable[Any]]) -> dict[str, int]:
    """Count issues per recognized severity.

    Issues whose severity is not ``high``, ``medium`` or ``low`` do not
    increment any bucket.
    """
    counts = {severity: 0 for severity in SEVERITIES}
    for issue in coerce_issues(issues):
        if issue.severity in counts:
            counts[issue.severity] += 1
    return counts


def score_from_counts(counts: Mapping[str, Any]) -> int:
    """Health score from a ``{severity: count}`` mapping.

    Negative or non-numeric counts are treated as zero.
    """
    score = float(MAX_SCORE)
    for severity, weight in SEVERITY_WEIGHTS.items():
        try:
            count = float(counts.get(severity, 0) or 0)
        except (TypeError, ValueError):
            count = 0.0
        score -= weight * max(0.0, count)
    score = max(MIN_SCORE, min(MAX_SCORE, score))
    return _round_half_up(score)


def compute_health_score(issues: Optional[Iterable[Any]]) -> int:
    """Severity-weighted 0-100 health score for an issue list.

    ``100 - 5*high - 2*medium - 0.5*low``, clamped to ``[0, 100]`` and
    rounded half-up.  An empty list scores 100.
    """
    return score_from_counts(count_by_severity(issues))


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------

def build_recommendations(
    groups: Iterable[IssueGroup] | Mapping[str, IssueGroup],
    max_affected_urls: int = DEFAULT_MAX_AFFECTED_URLS,
) -> list[RecommendationGroup]:
    """Map every issue group to a recommendation group, preserving order.

    At most *max_affected_urls* distinct URLs are kept per group; the rest
    are reported as ``additional_affected``.
    """
    if isinstance(groups, Mapping):
        groups = groups.values()
    cap = max(0, int(max_affected_urls))

    recs: list[RecommendationGroup] = []
    for group in groups:
        sample = list(group.affected_urls[:cap])
        recs.append(RecommendationGroup(
            issue_type=group.issue_type,
            title=group.title,
            description=group.description,
            severity=group.severity,
            count=group.count,
            recommendations=get_recommendations_for_type(group.issue_type),
            affected_urls=sample,
            additional_affected=len(group.affected_urls) - len(sample),
        ))
    return recs


def partition_by_priority(
    groups: Iterable[RecommendationGroup | IssueGroup],
) -> dict[str, list]:
    """Split groups into high / medium / low buckets, keeping input order.

    Groups with an unrecognized severity land in no bucket.
    """
    buckets: dict[str, list] = {severity: [] for severity in SEVERITIES}
    for group in groups:
        if group.severity in buckets:
            buckets[group.severity].append(group)
    return buckets


def summarize_issues(issues: Optional[Iterable[Any]]) -> list[dict[str, Any]]:
    """Per issue type and severity counts, in first-seen order."""
    summary: dict[str, dict[str, int]] = {}
    for issue in coerce_issues(issues):
        by_severity = summary.setdefault(issue.issue_type, {})
        by_severity[issue.severity] = by_severity.get(issue.severity, 0) + 1

    return [
        {"issue_type": issue_type, "severity": severity, "count": count}
        for issue_type, by_severity in summary.items()
        for severity, count in by_severity.items()
    ]


def generate_category_recommendations(issues: Optional[Iterable[Any]]) -> dict[str, list[str]]:
    """Site-wide recommendation bundles triggered by the issue types present."""
    return category_recommendations_for_types(
        issue.issue_type for issue in coerce_issues(issues)
    )


# ---------------------------------------------------------------------------
# IssueAggregationEngine
# ---------------------------------------------------------------------------

class IssueAggregationEngine:
    """Aggregate one crawl's technical issues into a scored, grouped report."""

    def __init__(
        self,
        max_affected_urls: int = DEFAULT_MAX_AFFECTED_URLS,
        severity_policy: str = "first_seen",
    ) -> None:
        if severity_policy not in SEVERITY_POLICIES:
            raise ValueError(
                f"Unknown severity policy: {severity_policy!r}. "
                f"Use one of: {', '.join(SEVERITY_POLICIES)}"
            )
        self.max_affected_urls = max(0, int(max_affected_urls))
        self.severity_policy = severity_policy

    def aggregate(self, issues: Optional[Iterable[Any]]) -> AggregationResult:
        """Run grouping, counting, scoring and recommendation building."""
        records: list[TechnicalIssue] = coerce_issues(issues)
        groups = group_by_type(records, severity_policy=self.severity_policy)
        counts = count_by_severity(records)
        score = score_from_counts(counts)

        logger.debug(
            "Aggregated %d issues into %d groups (score=%d)",
            len(records), len(groups), score,
        )
        return AggregationResult(
            total_issues=len(records),
            severity_counts=counts,
            health_score=score,
            grade=grade_for(score),
            groups=groups,
            recommendations=build_recommendations(groups, self.max_affected_urls),
        )

    def aggregate_dict(self, issues: Optional[Iterable[Any]]) -> dict[str, Any]:
        """Like :meth:`aggregate` but JSON-ready."""
        return self.aggregate(issues).to_dict()
