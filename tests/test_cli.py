"""End-to-end CLI tests via Typer's CliRunner."""

import json

import pytest
from typer.testing import CliRunner

from techseo.cli import app

runner = CliRunner()


@pytest.fixture()
def workdir(tmp_path, monkeypatch):
    """Run each command in an empty directory against a file-backed database."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DATABASE_URL", "sqlite:///" + str(tmp_path / "techseo.db"))
    return tmp_path


class TestScoreCommand:
    """``techseo score`` works on a plain issues file."""

    def test_json_output(self, tmp_path, sample_issues):
        issues_file = tmp_path / "issues.json"
        issues_file.write_text(json.dumps(sample_issues), encoding="utf-8")

        result = runner.invoke(app, ["score", str(issues_file), "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["health_score"] == 88
        assert data["severity_counts"] == {"high": 2, "medium": 1, "low": 1}

    def test_wrapped_issues_and_table_output(self, tmp_path, sample_issues):
        issues_file = tmp_path / "issues.json"
        issues_file.write_text(json.dumps({"issues": sample_issues}), encoding="utf-8")

        result = runner.invoke(app, ["score", str(issues_file)])
        assert result.exit_code == 0, result.output
        assert "88/100" in result.output
        assert "Missing Title" in result.output

    def test_empty_file_scores_perfect(self, tmp_path):
        issues_file = tmp_path / "issues.json"
        issues_file.write_text("[]", encoding="utf-8")

        result = runner.invoke(app, ["score", str(issues_file)])
        assert result.exit_code == 0
        assert "100/100" in result.output
        assert "No technical issues found" in result.output

    def test_bad_policy(self, tmp_path):
        issues_file = tmp_path / "issues.json"
        issues_file.write_text("[]", encoding="utf-8")

        result = runner.invoke(app, ["score", str(issues_file), "--severity-policy", "worst"])
        assert result.exit_code == 1

    def test_unreadable_file(self, tmp_path):
        result = runner.invoke(app, ["score", str(tmp_path / "missing.json")])
        assert result.exit_code == 1
        assert "Could not read" in result.output


class TestCrawlWorkflow:
    """setup -> import-crawl -> analyze -> report."""

    def test_full_workflow(self, workdir, sample_pages):
        pages_file = workdir / "pages.json"
        pages_file.write_text(json.dumps({"domain": "example.com", "pages": sample_pages}), encoding="utf-8")

        result = runner.invoke(app, ["setup"])
        assert result.exit_code == 0, result.output
        assert "Setup complete" in result.output

        result = runner.invoke(app, ["import-crawl", str(pages_file)])
        assert result.exit_code == 0, result.output
        assert "Crawl 1 stored for example.com" in result.output

        result = runner.invoke(app, ["analyze", "1"])
        assert result.exit_code == 0, result.output
        assert "6 issues on 5 pages, health score 82" in result.output

        out_file = workdir / "exports" / "report.json"
        result = runner.invoke(app, ["report", "1", "--output", str(out_file)])
        assert result.exit_code == 0, result.output
        assert "Report saved to" in result.output
        assert json.loads(out_file.read_text(encoding="utf-8"))["health_score"] == 82

        result = runner.invoke(app, ["status"])
        assert result.exit_code == 0, result.output
        assert "1 stored" in result.output

    def test_import_infers_domain(self, workdir, make_page):
        pages_file = workdir / "pages.json"
        pages_file.write_text(json.dumps([make_page("https://www.Example.org/")]), encoding="utf-8")

        result = runner.invoke(app, ["import-crawl", str(pages_file)])
        assert result.exit_code == 0, result.output
        assert "www.example.org" in result.output

    def test_analyze_unknown_crawl(self, workdir):
        result = runner.invoke(app, ["analyze", "99"])
        assert result.exit_code == 1
        assert "Crawl not found: 99" in result.output

    def test_report_bad_format(self, workdir, sample_pages):
        pages_file = workdir / "pages.json"
        pages_file.write_text(json.dumps(sample_pages), encoding="utf-8")
        runner.invoke(app, ["import-crawl", str(pages_file), "--domain", "example.com"])

        result = runner.invoke(app, ["report", "1", "-o", str(workdir / "r.pdf"), "-f", "pdf"])
        assert result.exit_code == 1
        assert "Unsupported format" in result.output

    def test_schema_command(self, workdir, make_page):
        pages_file = workdir / "pages.json"
        pages = [
            make_page("https://example.com/", schema=None),
            make_page("https://example.com/b", title="B", description="B", h1="B", schema="{oops"),
        ]
        pages_file.write_text(json.dumps(pages), encoding="utf-8")
        runner.invoke(app, ["import-crawl", str(pages_file)])

        result = runner.invoke(app, ["schema", "1"])
        assert result.exit_code == 0, result.output
        assert "None" in result.output
        assert "Invalid" in result.output

        result = runner.invoke(app, ["schema", "5"])
        assert result.exit_code == 1
        assert "Crawl not found: 5" in result.output
