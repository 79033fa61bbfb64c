"""Crawl and technical issue store backed by SQLAlchemy.

Wraps the database so callers can import a crawl's pages, run issue
detection, read issues back, and turn them into an aggregated report.
"""

import json
import logging
import os
from datetime import datetime, timezone
from html import escape
from typing import Any, Optional

from sqlalchemy import select

from techseo.database import get_session
from techseo.models.crawl import CrawledPage, SiteCrawl, TechnicalIssueRecord
from techseo.modules.technical_audit.aggregator import (
    IssueAggregationEngine,
    generate_category_recommendations,
    partition_by_priority,
    summarize_issues,
)
from techseo.modules.technical_audit.detector import IssueDetector
from techseo.modules.technical_audit.issues import TechnicalIssue, coerce_issue, coerce_issues

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _crawl_to_dict(crawl: SiteCrawl) -> dict[str, Any]:
    return {
        "id": crawl.id,
        "domain": crawl.domain,
        "status": crawl.status,
        "pages_crawled": crawl.pages_crawled,
        "health_score": crawl.health_score,
        "created_at": crawl.created_at.isoformat() if crawl.created_at else None,
        "completed_at": crawl.completed_at.isoformat() if crawl.completed_at else None,
    }


class TechnicalSEOService:
    """Persist crawls and their technical issues; build reports from them."""

    def __init__(self, engine: Optional[IssueAggregationEngine] = None) -> None:
        self.engine = engine or IssueAggregationEngine()

    # ------------------------------------------------------------------
    # Crawls
    # ------------------------------------------------------------------

    def create_crawl(self, domain: str, pages: Optional[list[dict[str, Any]]] = None) -> int:
        """Store a crawl and its page records; return the crawl id."""
        pages = pages or []
        with get_session() as session:
            crawl = SiteCrawl(domain=domain, status="pending", pages_crawled=len(pages))
            for page in pages:
                crawl.pages.append(CrawledPage(
                    url=str(page.get("url") or ""),
                    status_code=int(page.get("status_code") or 0),
                    title=page.get("title"),
                    meta_description=page.get("meta_description"),
                    h1=page.get("h1"),
                    word_count=page.get("word_count"),
                    html_content=page.get("html_content"),
                ))
            session.add(crawl)
            session.flush()
            crawl_id = crawl.id
        logger.info("Stored crawl %d for %s with %d pages", crawl_id, domain, len(pages))
        return crawl_id

    def get_crawl(self, crawl_id: int) -> dict[str, Any]:
        with get_session() as session:
            crawl = session.get(SiteCrawl, crawl_id)
            if crawl is None:
                raise ValueError("Crawl not found: " + str(crawl_id))
            return _crawl_to_dict(crawl)

    def list_crawls(self, domain: Optional[str] = None) -> list[dict[str, Any]]:
        """Return crawls, newest first."""
        with get_session() as session:
            stmt = select(SiteCrawl).order_by(SiteCrawl.created_at.desc(), SiteCrawl.id.desc())
            if domain:
                stmt = stmt.where(SiteCrawl.domain == domain)
            return [_crawl_to_dict(c) for c in session.scalars(stmt)]

    def analyze_crawl(self, crawl_id: int) -> dict[str, Any]:
        """Detect issues over the stored pages, replacing any earlier results."""
        with get_session() as session:
            crawl = session.get(SiteCrawl, crawl_id)
            if crawl is None:
                raise ValueError("Crawl not found: " + str(crawl_id))

            pages = [page.to_dict() for page in crawl.pages]
            issues = IssueDetector(crawl_id=crawl_id).detect(pages)

            session.query(TechnicalIssueRecord).filter_by(crawl_id=crawl_id).delete()
            for issue in issues:
                session.add(self._to_record(crawl_id, issue))

            score = self.engine.aggregate(issues).health_score
            crawl.health_score = score
            crawl.status = "completed"
            crawl.completed_at = _utcnow()

        logger.info("Analyzed crawl %d: %d issues, score=%d", crawl_id, len(issues), score)
        return {
            "crawl_id": crawl_id,
            "pages_analyzed": len(pages),
            "issues_found": len(issues),
            "health_score": score,
        }

    def validate_schema_markup(self, crawl_id: int) -> list[dict[str, Any]]:
        """Structured data results for the crawl's successfully fetched pages."""
        with get_session() as session:
            crawl = session.get(SiteCrawl, crawl_id)
            if crawl is None:
                raise ValueError("Crawl not found: " + str(crawl_id))
            pages = [page.to_dict() for page in crawl.pages]

        results = IssueDetector(crawl_id=crawl_id).validate_schema(pages)
        logger.info(
            "Validated schema on %d pages of crawl %d (%d invalid)",
            len(results), crawl_id, sum(1 for r in results if not r.is_valid),
        )
        return [result.to_dict() for result in results]

    # ------------------------------------------------------------------
    # Issues
    # ------------------------------------------------------------------

    @staticmethod
    def _to_record(crawl_id: int, issue: TechnicalIssue) -> TechnicalIssueRecord:
        record = TechnicalIssueRecord(
            crawl_id=crawl_id,
            page_url=issue.page_url,
            issue_type=issue.issue_type,
            issue_severity=issue.severity,
            issue_description=issue.description,
            fixed_status=issue.fixed_status,
        )
        if issue.detected_at:
            try:
                record.detected_at = datetime.fromisoformat(issue.detected_at)
            except ValueError:
                logger.debug("Unparseable detected_at %r; using now", issue.detected_at)
        return record

    def save_issues(self, crawl_id: int, issues: list[Any]) -> int:
        """Append issue records to a crawl; return how many were stored."""
        records = coerce_issues(issues)
        with get_session() as session:
            if session.get(SiteCrawl, crawl_id) is None:
                raise ValueError("Crawl not found: " + str(crawl_id))
            for issue in records:
                session.add(self._to_record(crawl_id, issue))
        logger.info("Saved %d issues for crawl %d", len(records), crawl_id)
        return len(records)

    def _query_issues(self, crawl_id: int, include_fixed: bool = False, **filters: Any) -> list[TechnicalIssue]:
        with get_session() as session:
            query = session.query(TechnicalIssueRecord).filter_by(crawl_id=crawl_id, **filters)
            if not include_fixed:
                query = query.filter_by(fixed_status=False)
            return [coerce_issue(row) for row in query.order_by(TechnicalIssueRecord.id)]

    def get_issues_by_crawl(self, crawl_id: int, include_fixed: bool = False) -> list[TechnicalIssue]:
        return self._query_issues(crawl_id, include_fixed=include_fixed)

    def get_high_severity_issues(self, crawl_id: int) -> list[TechnicalIssue]:
        return self._query_issues(crawl_id, issue_severity="high")

    def get_issues_by_type(self, crawl_id: int, issue_type: str) -> list[TechnicalIssue]:
        return self._query_issues(crawl_id, issue_type=issue_type)

    def get_issues_summary(self, crawl_id: int) -> list[dict[str, Any]]:
        """Per type and severity counts for a crawl."""
        return summarize_issues(self.get_issues_by_crawl(crawl_id))

    def mark_issue_fixed(self, issue_id: int, fixed: bool = True) -> dict[str, Any]:
        with get_session() as session:
            record = session.get(TechnicalIssueRecord, issue_id)
            if record is None:
                raise ValueError("Issue not found: " + str(issue_id))
            record.fixed_status = fixed
            result = {"id": record.id, "issue_type": record.issue_type, "fixed_status": fixed}
        logger.info("Issue %d fixed_status -> %s", issue_id, fixed)
        return result

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    def build_report(self, crawl_id: int) -> dict[str, Any]:
        """Aggregate a crawl's open issues into a JSON-ready report."""
        crawl = self.get_crawl(crawl_id)
        issues = self.get_issues_by_crawl(crawl_id)
        result = self.engine.aggregate(issues)
        buckets = partition_by_priority(result.recommendations)

        report = result.to_dict()
        report.update({
            "crawl": crawl,
            "generated_at": _utcnow().isoformat(),
            "priority_counts": {severity: len(groups) for severity, groups in buckets.items()},
            "issues_summary": summarize_issues(issues),
            "category_recommendations": generate_category_recommendations(issues),
        })
        return report

    def export_report(self, report: dict[str, Any], filepath: str, fmt: str = "json") -> str:
        """Write *report* to *filepath* as JSON or HTML; return the absolute path."""
        fmt = fmt.lower()
        if fmt not in ("json", "html"):
            raise ValueError(f"Unsupported format: {fmt!r}. Use 'html' or 'json'.")

        os.makedirs(os.path.dirname(filepath) or ".", exist_ok=True)
        with open(filepath, "w", encoding="utf-8") as fh:
            if fmt == "html":
                fh.write(self._render_html_report(report))
            else:
                json.dump(report, fh, indent=2, default=str)

        abs_path = os.path.abspath(filepath)
        logger.info("Report exported to %s", abs_path)
        return abs_path

    @staticmethod
    def _render_html_report(d: dict[str, Any]) -> str:
        """Produce a self-contained HTML report."""
        crawl = d.get("crawl", {})
        domain = escape(str(crawl.get("domain", "Unknown")))
        score = d.get("health_score", 0)
        grade = d.get("grade", "?")
        counts = d.get("severity_counts", {})

        grade_color = {
            "A": "#22c55e", "B": "#84cc16", "C": "#eab308",
            "D": "#f97316", "F": "#ef4444",
        }.get(grade, "#6b7280")
        sev_colors = {"high": "#ef4444", "medium": "#f97316", "low": "#3b82f6"}

        rec_items = ""
        for rec in d.get("recommendations", []):
            sev = rec.get("severity", "")
            bullets = "".join("<li>{0}</li>".format(escape(b)) for b in rec.get("recommendations", []))
            pages = "".join(
                "<li><a href=\"{0}\">{0}</a></li>".format(escape(u)) for u in rec.get("affected_urls", [])
            )
            more = rec.get("additional_affected", 0)
            if more:
                pages += "<li>...and {0} more</li>".format(more)
            count = rec.get("count", 0)
            rec_items += (
                "<div style=\"border:1px solid #e5e7eb;border-radius:8px;padding:16px;margin-bottom:12px;\">"
                "<h3 style=\"margin:0 0 8px;\"><span style=\"color:{sc};\">[{sev}]</span> {title}</h3>"
                "<p>{desc} ({count} {noun})</p>"
                "<ol>{bullets}</ol>"
                "<ul>{pages}</ul>"
                "</div>"
            ).format(
                sc=sev_colors.get(sev, "#6b7280"),
                sev=escape(sev.upper() or "UNKNOWN"),
                title=escape(rec.get("title", "")),
                desc=escape(rec.get("description", "")),
                count=count,
                noun="issue" if count == 1 else "issues",
                bullets=bullets,
                pages=pages,
            )

        return (
            "<!DOCTYPE html><html lang=\"en\"><head><meta charset=\"UTF-8\">"
            "<title>Technical SEO Report - {domain}</title>"
            "<style>body{{font-family:system-ui,sans-serif;max-width:1000px;margin:0 auto;padding:20px;"
            "background:#f8fafc;color:#1e293b;}}</style></head><body>"
            "<h1>Technical SEO Health Report</h1>"
            "<p><strong>Domain:</strong> {domain} | <strong>Generated:</strong> {ts}</p>"
            "<div style=\"font-size:3rem;font-weight:bold;color:{gc};\">{score} ({grade})</div>"
            "<p>High: {high} | Medium: {medium} | Low: {low}</p>"
            "<h2>Recommendations</h2>{rec_items}"
            "</body></html>"
        ).format(
            domain=domain, ts=escape(str(d.get("generated_at", ""))),
            gc=grade_color, score=score, grade=grade,
            high=counts.get("high", 0), medium=counts.get("medium", 0), low=counts.get("low", 0),
            rec_items=rec_items,
        )
