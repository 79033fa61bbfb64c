"""SQLAlchemy ORM models: import every model so Base.metadata is populated."""

from techseo.models.crawl import (
    SiteCrawl,
    CrawledPage,
    TechnicalIssueRecord,
)

__all__ = [
    "SiteCrawl",
    "CrawledPage",
    "TechnicalIssueRecord",
]
