"""Rule-based technical issue detection over crawled page records.

Turns the pages stored for a crawl into the flat ``TechnicalIssue`` list the
aggregation engine consumes.  Page fields missing from a record (title, meta
description, H1, word count) are extracted from its HTML.
"""

import logging
import re
import uuid
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Iterable, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from techseo.modules.technical_audit.issues import TechnicalIssue
from techseo.modules.technical_audit.schema import SchemaValidationResult, validate_schema_markup

logger = logging.getLogger(__name__)

MIN_WORD_COUNT = 300


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _parse_signals(html: str) -> dict[str, Any]:
    """Extract the on-page signals the detection rules need."""
    soup = BeautifulSoup(html, "html.parser")

    title_tag = soup.find("title")
    title = title_tag.get_text(strip=True) if title_tag else ""

    meta_desc = ""
    md_tag = soup.find("meta", attrs={"name": re.compile(r"^description$", re.I)})
    if md_tag:
        meta_desc = (md_tag.get("content", "") or "").strip()

    h1_tag = soup.find("h1")
    h1 = h1_tag.get_text(strip=True) if h1_tag else ""

    canonical_tag = soup.find("link", rel="canonical")
    canonical_url = canonical_tag["href"].strip() if canonical_tag and canonical_tag.get("href") else ""

    viewport = None
    vp_tag = soup.find("meta", attrs={"name": re.compile(r"^viewport$", re.I)})
    if vp_tag is not None:
        viewport = vp_tag.get("content", "") or ""

    text_content = soup.get_text(separator=" ", strip=True)

    return {
        "title": title,
        "meta_description": meta_desc,
        "h1": h1,
        "canonical_url": canonical_url,
        "viewport": viewport,
        "word_count": len(text_content.split()),
    }


def _recorded(page: dict[str, Any], key: str, signals: dict[str, Any]) -> Any:
    value = page.get(key)
    if value is None:
        value = signals[key]
    return value.strip() if isinstance(value, str) else value


class IssueDetector:
    """Detect technical SEO issues across the pages of one crawl."""

    def __init__(
        self,
        crawl_id: Optional[Any] = None,
        min_word_count: int = MIN_WORD_COUNT,
        check_schema: bool = True,
    ) -> None:
        self.crawl_id = None if crawl_id is None else str(crawl_id)
        self.min_word_count = min_word_count
        self.check_schema = check_schema

    def _issue(self, page_url: str, issue_type: str, severity: str, description: str) -> TechnicalIssue:
        return TechnicalIssue(
            id=str(uuid.uuid4()),
            page_url=page_url,
            issue_type=issue_type,
            severity=severity,
            description=description,
            crawl_id=self.crawl_id,
            detected_at=_now_iso(),
        )

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    def detect(self, pages: Iterable[dict[str, Any]]) -> list[TechnicalIssue]:
        """Run every page-level and site-level check."""
        issues: list[TechnicalIssue] = []
        titles: dict[str, list[str]] = defaultdict(list)
        descriptions: dict[str, list[str]] = defaultdict(list)
        h1s: dict[str, list[str]] = defaultdict(list)

        for page in pages:
            url = str(page.get("url") or "")
            status = int(page.get("status_code") or 0)
            html = page.get("html_content") or ""

            # Pages that could not be fetched carry nothing to check.
            if status == 0 or not html:
                continue

            if 400 <= status < 500:
                issues.append(self._issue(
                    url, "broken_link", "high",
                    f"Broken link with status code {status}",
                ))
            elif 300 <= status < 400:
                issues.append(self._issue(
                    url, "redirect_chain", "medium",
                    f"Redirect with status code {status}",
                ))

            if status != 200:
                continue

            try:
                issues.extend(self._check_page(page, url, html, titles, descriptions, h1s))
            except Exception as exc:
                logger.warning("Error analyzing page %s: %s", url, exc)

        issues.extend(self._duplicates(
            titles, "duplicate_title", "high",
            lambda n, value: f'{n} pages share the same title: "{value}"',
        ))
        issues.extend(self._duplicates(
            descriptions, "duplicate_meta_description", "medium",
            lambda n, value: f"{n} pages share the same meta description",
        ))
        issues.extend(self._duplicates(
            h1s, "duplicate_h1", "medium",
            lambda n, value: f'{n} pages share the same H1: "{value}"',
        ))

        logger.info("Detected %d technical issues", len(issues))
        return issues

    # ------------------------------------------------------------------
    # Page-level checks
    # ------------------------------------------------------------------

    def _check_page(
        self,
        page: dict[str, Any],
        url: str,
        html: str,
        titles: dict[str, list[str]],
        descriptions: dict[str, list[str]],
        h1s: dict[str, list[str]],
    ) -> list[TechnicalIssue]:
        signals = _parse_signals(html)
        found: list[TechnicalIssue] = []

        # Recorded fields win over the HTML; None means "not recorded".
        title = _recorded(page, "title", signals)
        meta_desc = _recorded(page, "meta_description", signals)
        h1 = _recorded(page, "h1", signals)
        word_count = _recorded(page, "word_count", signals)

        if not title:
            found.append(self._issue(url, "missing_title", "high", "Page is missing a title tag"))
        else:
            titles[title].append(url)

        if not meta_desc:
            found.append(self._issue(
                url, "missing_meta_description", "medium", "Page is missing a meta description",
            ))
        else:
            descriptions[meta_desc].append(url)

        if not h1:
            found.append(self._issue(url, "missing_h1", "medium", "Page is missing an H1 tag"))
        else:
            h1s[h1].append(url)

        if word_count and word_count < self.min_word_count:
            found.append(self._issue(
                url, "low_content", "medium",
                f"Page has only {word_count} words, which is less than the "
                f"recommended minimum of {self.min_word_count} words",
            ))

        canonical = signals["canonical_url"]
        if not canonical:
            found.append(self._issue(
                url, "missing_canonical", "medium", "Page is missing a canonical link tag",
            ))
        elif urljoin(url, canonical) != url:
            found.append(self._issue(
                url, "canonical_mismatch", "low",
                "Page canonicalizes to a different URL: " + canonical,
            ))

        viewport = signals["viewport"]
        if not viewport:
            found.append(self._issue(
                url, "missing_viewport", "high",
                "Page is missing a viewport meta tag, which is required for mobile-friendly pages",
            ))
        elif "width=device-width" not in viewport.replace(" ", ""):
            found.append(self._issue(
                url, "incorrect_viewport", "medium",
                "Viewport tag does not include width=device-width, which may cause mobile rendering issues",
            ))

        if self.check_schema:
            found.extend(self._schema_issues(validate_schema_markup(url, html)))

        return found

    def _schema_issues(self, result: SchemaValidationResult) -> list[TechnicalIssue]:
        if not result.has_schema:
            return [self._issue(
                result.url, "missing_schema", "low",
                "Page has no structured data markup (JSON-LD or microdata)",
            )]
        if not result.is_valid:
            return [self._issue(
                result.url, "invalid_schema", "medium",
                "Invalid structured data: " + "; ".join(result.validation_errors),
            )]
        return []

    def validate_schema(self, pages: Iterable[dict[str, Any]]) -> list[SchemaValidationResult]:
        """Per-page structured data results for every 200 page with HTML."""
        results: list[SchemaValidationResult] = []
        for page in pages:
            html = page.get("html_content") or ""
            if int(page.get("status_code") or 0) != 200 or not html:
                continue
            results.append(validate_schema_markup(str(page.get("url") or ""), html))
        return results

    # ------------------------------------------------------------------
    # Site-level checks
    # ------------------------------------------------------------------

    def _duplicates(self, seen: dict[str, list[str]], issue_type: str, severity: str, describe) -> list[TechnicalIssue]:
        """One issue per value shared by more than one page."""
        found: list[TechnicalIssue] = []
        for value, urls in seen.items():
            if len(urls) > 1:
                found.append(self._issue(", ".join(urls), issue_type, severity, describe(len(urls), value)))
        return found


def detect_issues(pages: Iterable[dict[str, Any]], crawl_id: Optional[Any] = None) -> list[TechnicalIssue]:
    """Convenience wrapper around :class:`IssueDetector`."""
    return IssueDetector(crawl_id=crawl_id).detect(pages)
