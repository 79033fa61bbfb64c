"""Technical SEO audit module."""

from techseo.modules.technical_audit.aggregator import (
    IssueAggregationEngine,
    build_recommendations,
    compute_health_score,
    count_by_severity,
    group_by_type,
)
from techseo.modules.technical_audit.detector import IssueDetector
from techseo.modules.technical_audit.issues import (
    AggregationResult,
    IssueGroup,
    RecommendationGroup,
    TechnicalIssue,
)
from techseo.modules.technical_audit.knowledge import get_recommendations_for_type
from techseo.modules.technical_audit.schema import SchemaValidationResult, validate_schema_markup
from techseo.modules.technical_audit.service import TechnicalSEOService

__all__ = [
    "IssueAggregationEngine",
    "IssueDetector",
    "TechnicalSEOService",
    "TechnicalIssue",
    "IssueGroup",
    "RecommendationGroup",
    "AggregationResult",
    "group_by_type",
    "count_by_severity",
    "compute_health_score",
    "build_recommendations",
    "get_recommendations_for_type",
    "SchemaValidationResult",
    "validate_schema_markup",
]
