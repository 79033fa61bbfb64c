"""Shared pytest fixtures for the technical SEO test suite."""

import sys
from pathlib import Path

import pytest

# Ensure project root is on sys.path so 'techseo' is importable.
_project_root = str(Path(__file__).resolve().parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)


@pytest.fixture(autouse=True)
def _reset_db_engine():
    """Autouse fixture: reset the global DB engine before and after every test.

    This prevents cross-test pollution when tests create their own in-memory
    databases.
    """
    from techseo.database import reset_engine
    reset_engine()
    yield
    reset_engine()


@pytest.fixture()
def test_db():
    """Provide an in-memory SQLite database with all tables created.

    Yields a database URL string. The engine is automatically torn down
    after the test by the autouse ``_reset_db_engine`` fixture.
    """
    from techseo.database import init_db
    db_url = "sqlite:///:memory:"
    init_db(database_url=db_url, echo=False)
    yield db_url


@pytest.fixture()
def sample_issues():
    """A small crawl's worth of issues across all three severities."""
    return [
        {
            "id": "1",
            "page_url": "https://example.com/",
            "issue_type": "missing_title",
            "issue_severity": "high",
            "issue_description": "Page is missing a title tag",
        },
        {
            "id": "2",
            "page_url": "https://example.com/about",
            "issue_type": "missing_title",
            "issue_severity": "high",
            "issue_description": "Page is missing a title tag",
        },
        {
            "id": "3",
            "page_url": "https://example.com/blog",
            "issue_type": "missing_meta_description",
            "issue_severity": "medium",
            "issue_description": "Missing meta description: no <meta name=description> found",
        },
        {
            "id": "4",
            "page_url": "https://example.com/blog",
            "issue_type": "canonical_mismatch",
            "issue_severity": "low",
            "issue_description": "Page canonicalizes to a different URL: https://example.com/",
        },
    ]


ORGANIZATION_SCHEMA = '{"@context": "https://schema.org", "@type": "Organization", "name": "Example"}'


def _page(url, title="Home", description="A page", h1="Welcome", status=200, body_words=400, canonical=None,
          viewport="width=device-width, initial-scale=1", schema=ORGANIZATION_SCHEMA):
    head = ""
    if schema is not None:
        head += '<script type="application/ld+json">' + schema + "</script>"
    if title:
        head += "<title>" + title + "</title>"
    if description:
        head += '<meta name="description" content="' + description + '">'
    if viewport is not None:
        head += '<meta name="viewport" content="' + viewport + '">'
    head += '<link rel="canonical" href="' + (canonical or url) + '">'
    body = ("<h1>" + h1 + "</h1>" if h1 else "") + "<p>" + " ".join(["word"] * body_words) + "</p>"
    return {
        "url": url,
        "status_code": status,
        "html_content": "<html><head>" + head + "</head><body>" + body + "</body></html>",
    }


@pytest.fixture()
def make_page():
    """Factory for crawled page dicts with a healthy default page."""
    return _page


@pytest.fixture()
def sample_pages():
    """Crawled pages that trigger one of each page-level check."""
    return [
        _page("https://example.com/"),
        _page("https://example.com/no-title", title=""),
        _page("https://example.com/gone", status=404),
        _page("https://example.com/moved", status=301),
        _page("https://example.com/thin", title="Thin", description="Thin page", h1="Thin", body_words=50),
    ]
