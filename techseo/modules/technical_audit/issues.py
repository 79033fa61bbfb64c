"""Issue and result data types for the technical SEO aggregation engine.

Crawler output cannot be fully trusted, so every raw record goes through
:func:`coerce_issue` first.  Missing fields are replaced with safe defaults
instead of raising, which keeps one bad record from aborting aggregation of
the rest.
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Iterable, Mapping, Optional

logger = logging.getLogger(__name__)

SEVERITIES: tuple[str, ...] = ("high", "medium", "low")

# Higher rank wins when a group escalates to its worst severity.
SEVERITY_RANK: dict[str, int] = {"high": 3, "medium": 2, "low": 1}

UNKNOWN_ISSUE_TYPE = "unknown"

# (snake_case, camelCase / legacy) source keys for each field.
_FIELD_KEYS: dict[str, tuple[str, ...]] = {
    "id": ("id",),
    "page_url": ("page_url", "pageUrl", "url"),
    "issue_type": ("issue_type", "issueType", "type"),
    "severity": ("severity", "issue_severity", "issueSeverity"),
    "description": ("description", "issue_description", "issueDescription"),
    "crawl_id": ("crawl_id", "site_crawl_id", "siteCrawlId"),
    "detected_at": ("detected_at", "detectedAt"),
    "fixed_status": ("fixed_status", "fixedStatus"),
}


@dataclass
class TechnicalIssue:
    """One detected problem instance on one page."""

    id: str = ""
    page_url: str = ""
    issue_type: str = UNKNOWN_ISSUE_TYPE
    severity: str = ""  # high / medium / low; anything else is not counted
    description: str = ""
    crawl_id: Optional[str] = None
    detected_at: Optional[str] = None
    fixed_status: bool = False

    def __post_init__(self) -> None:
        self.id = _text(self.id)
        self.page_url = _text(self.page_url)
        self.issue_type = _text(self.issue_type) or UNKNOWN_ISSUE_TYPE
        self.severity = normalize_severity(self.severity)
        self.description = _text(self.description)
        self.fixed_status = parse_bool(self.fixed_status)

    @property
    def summary(self) -> str:
        """Text before the first ``:`` of the description, trimmed."""
        return self.description.split(":", 1)[0].strip()

    @property
    def has_known_severity(self) -> bool:
        return self.severity in SEVERITY_RANK

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class IssueGroup:
    """All issues sharing one ``issue_type``."""

    issue_type: str
    title: str
    description: str
    severity: str
    count: int = 0
    affected_urls: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class RecommendationGroup:
    """An issue group plus its remediation guidance."""

    issue_type: str
    title: str
    description: str
    severity: str
    count: int
    recommendations: list[str] = field(default_factory=list)
    affected_urls: list[str] = field(default_factory=list)
    additional_affected: int = 0  # distinct URLs beyond the sample

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class AggregationResult:
    """Everything derived from one crawl's issue list."""

    total_issues: int
    severity_counts: dict[str, int]
    health_score: int
    grade: str
    groups: dict[str, IssueGroup] = field(default_factory=dict)
    recommendations: list[RecommendationGroup] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_issues": self.total_issues,
            "severity_counts": dict(self.severity_counts),
            "health_score": self.health_score,
            "grade": self.grade,
            "groups": {key: group.to_dict() for key, group in self.groups.items()},
            "recommendations": [rec.to_dict() for rec in self.recommendations],
        }


# ---------------------------------------------------------------------------
# Coercion of raw records
# ---------------------------------------------------------------------------

def normalize_severity(value: Any) -> str:
    """Lowercase and trim a severity label; ``None`` becomes ``""``."""
    if value is None:
        return ""
    return str(value).strip().lower()


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


_FALSE_STRINGS = frozenset({"", "0", "false", "no", "off", "n", "f"})


def parse_bool(value: Any) -> bool:
    """``"false"``, ``"0"``, ``"no"`` and friends are False; other strings True."""
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_STRINGS
    return bool(value)


def _lookup(raw: Any, name: str) -> Any:
    """Read field *name* from a mapping (any known key spelling) or an object."""
    keys = _FIELD_KEYS[name]
    if isinstance(raw, Mapping):
        for key in keys:
            if key in raw and raw[key] is not None:
                return raw[key]
        return None
    for key in keys:
        value = getattr(raw, key, None)
        if value is not None:
            return value
    return None


def coerce_issue(raw: Any) -> TechnicalIssue:
    """Turn a dict, ORM row or :class:`TechnicalIssue` into a ``TechnicalIssue``.

    Never raises.  Absent ``issue_type`` becomes ``"unknown"``, absent
    ``page_url`` and ``description`` become ``""`` and an absent or
    unrecognized severity is kept as-is so it is excluded from counts.
    """
    if isinstance(raw, TechnicalIssue):
        # Fields may have been reassigned after construction.
        return TechnicalIssue(**asdict(raw))
    if raw is None or isinstance(raw, (str, bytes, int, float)):
        logger.debug("Ignoring non-record issue input: %r", raw)
        return TechnicalIssue()

    issue_type = _text(_lookup(raw, "issue_type")) or UNKNOWN_ISSUE_TYPE
    severity = normalize_severity(_lookup(raw, "severity"))
    page_url = _text(_lookup(raw, "page_url"))
    if issue_type == UNKNOWN_ISSUE_TYPE or not severity or not page_url:
        logger.debug(
            "Malformed issue record (type=%r severity=%r url=%r)",
            issue_type, severity, page_url,
        )

    raw_id = _lookup(raw, "id")
    crawl_id = _lookup(raw, "crawl_id")
    detected_at = _lookup(raw, "detected_at")
    if detected_at is not None and not isinstance(detected_at, str):
        detected_at = detected_at.isoformat() if hasattr(detected_at, "isoformat") else str(detected_at)

    return TechnicalIssue(
        id="" if raw_id is None else str(raw_id),
        page_url=page_url,
        issue_type=issue_type,
        severity=severity,
        description=_text(_lookup(raw, "description")),
        crawl_id=None if crawl_id is None else str(crawl_id),
        detected_at=detected_at,
        fixed_status=parse_bool(_lookup(raw, "fixed_status")),
    )


def coerce_issues(records: Optional[Iterable[Any]]) -> list[TechnicalIssue]:
    """Coerce every record in *records*; ``None`` is treated as empty."""
    if not records:
        return []
    return [coerce_issue(record) for record in records]
