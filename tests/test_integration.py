"""Integration tests for the technical SEO health package.

Covers database setup, module imports, application wiring, configuration
loading, CLI smoke tests, and syntax validation of every Python file in
the project.
"""

import ast
import importlib
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Project root (conftest.py already puts it on sys.path)
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parent.parent


# ===========================================================================
# 1. Database setup
# ===========================================================================
class TestDatabaseSetup:
    """Verify that the database can be initialised with in-memory SQLite."""

    def test_init_db_creates_tables(self, test_db):
        """init_db with in-memory SQLite should create all expected tables."""
        from techseo.database import get_engine
        from sqlalchemy import inspect

        table_names = inspect(get_engine()).get_table_names()
        for table in ("site_crawls", "crawled_pages", "technical_issues"):
            assert table in table_names, (
                "Missing table: " + table + ". Found: " + str(table_names)
            )

    def test_get_session_context_manager(self, test_db):
        """get_session should yield a usable Session object."""
        from techseo.database import get_session
        from sqlalchemy import text as sa_text

        with get_session() as session:
            row = session.execute(sa_text("SELECT 1")).fetchone()
            assert row is not None
            assert row[0] == 1

    def test_get_session_rolls_back_on_error(self, test_db):
        from techseo.database import get_session
        from techseo.models import SiteCrawl

        with pytest.raises(RuntimeError):
            with get_session() as session:
                session.add(SiteCrawl(domain="rollback.com"))
                session.flush()
                raise RuntimeError("boom")

        with get_session() as session:
            assert session.query(SiteCrawl).filter_by(domain="rollback.com").count() == 0

    def test_reset_db(self, test_db):
        """reset_db should drop and recreate all tables without error."""
        from techseo.database import reset_db, get_engine
        from sqlalchemy import inspect

        reset_db()
        assert len(inspect(get_engine()).get_table_names()) == 3

    def test_resolve_database_url(self, monkeypatch):
        from techseo.database import DEFAULT_DATABASE_URL, resolve_database_url

        monkeypatch.delenv("DATABASE_URL", raising=False)
        assert resolve_database_url() == DEFAULT_DATABASE_URL
        monkeypatch.setenv("DATABASE_URL", "sqlite:///env.db")
        assert resolve_database_url() == "sqlite:///env.db"
        assert resolve_database_url("sqlite:///explicit.db") == "sqlite:///explicit.db"

    def test_table_names(self, test_db):
        from techseo.database import table_names
        assert sorted(table_names()) == ["crawled_pages", "site_crawls", "technical_issues"]

    def test_deleting_crawl_cascades(self, test_db, sample_pages):
        from techseo.database import get_session
        from techseo.models import CrawledPage, SiteCrawl
        from techseo.modules.technical_audit.service import TechnicalSEOService

        crawl_id = TechnicalSEOService().create_crawl("example.com", sample_pages)
        with get_session() as session:
            session.delete(session.get(SiteCrawl, crawl_id))
        with get_session() as session:
            assert session.query(CrawledPage).count() == 0


# ===========================================================================
# 2. Module imports
# ===========================================================================
class TestModuleImports:
    """Public classes should be importable from their modules."""

    @pytest.mark.parametrize("module_path,class_names", [
        ("techseo.models", ["SiteCrawl", "CrawledPage", "TechnicalIssueRecord"]),
        ("techseo.modules.technical_audit", [
            "IssueAggregationEngine", "IssueDetector", "TechnicalSEOService",
            "TechnicalIssue", "IssueGroup", "RecommendationGroup", "AggregationResult",
        ]),
        ("techseo.app", ["TechnicalSEOApp"]),
    ])
    def test_module_importable(self, module_path, class_names):
        mod = importlib.import_module(module_path)
        for name in class_names:
            assert hasattr(mod, name), module_path + " missing " + name

    def test_version(self):
        import techseo
        assert techseo.__version__


# ===========================================================================
# 3. Application wiring
# ===========================================================================
class TestTechnicalSEOApp:
    """TechnicalSEOApp loads config and hands out configured services."""

    def _write_config(self, tmp_path, policy="max", max_urls=1):
        config_path = tmp_path / "settings.yaml"
        config_path.write_text(
            "app:\n"
            "  name: Test\n"
            "  export_dir: \"" + str(tmp_path / "exports") + "\"\n"
            "database:\n"
            "  url: \"sqlite:///:memory:\"\n"
            "audit:\n"
            "  max_affected_urls: " + str(max_urls) + "\n"
            "  severity_policy: " + policy + "\n",
            encoding="utf-8",
        )
        return str(config_path)

    def test_requires_initialize(self):
        from techseo.app import TechnicalSEOApp
        with pytest.raises(RuntimeError):
            TechnicalSEOApp(config_path="missing.yaml").get_service()

    def test_engine_from_config(self, tmp_path, monkeypatch):
        from techseo.app import TechnicalSEOApp
        monkeypatch.delenv("DATABASE_URL", raising=False)

        seo_app = TechnicalSEOApp(config_path=self._write_config(tmp_path), env_path=str(tmp_path / ".env"))
        seo_app.initialize()
        engine = seo_app.get_service().engine
        assert engine.severity_policy == "max"
        assert engine.max_affected_urls == 1
        assert (tmp_path / "exports").is_dir()
        assert seo_app.get_engine(max_affected_urls=5).max_affected_urls == 5

    def test_missing_config_uses_defaults(self, tmp_path, monkeypatch):
        from techseo.app import TechnicalSEOApp
        monkeypatch.setenv("DATABASE_URL", "sqlite:///:memory:")

        seo_app = TechnicalSEOApp(config_path=str(tmp_path / "nope.yaml"), env_path=str(tmp_path / ".env"))
        seo_app.initialize()
        assert seo_app.config == {}
        assert seo_app.get_service().engine.severity_policy == "first_seen"
        status = seo_app.get_status()
        assert status["database"]["status"] == "ok"
        assert status["config"]["status"] == "warning"
        assert status["database_url"]["details"] == "sqlite:///:memory:"


# ===========================================================================
# 4. Settings YAML
# ===========================================================================
class TestSettingsYaml:
    """Configuration file should be loadable."""

    def _load(self):
        import yaml
        settings_path = PROJECT_ROOT / "config" / "settings.yaml"
        with open(settings_path) as fh:
            return yaml.safe_load(fh)

    def test_settings_file_exists(self):
        settings_path = PROJECT_ROOT / "config" / "settings.yaml"
        assert settings_path.exists(), "config/settings.yaml not found"

    def test_settings_has_required_sections(self):
        config = self._load()
        assert isinstance(config, dict)
        for section in ("app", "database", "audit"):
            assert section in config, "Missing config section: " + section

    def test_settings_app_name(self):
        assert self._load()["app"]["name"] == "Technical SEO Health"

    def test_settings_audit_defaults(self):
        audit = self._load()["audit"]
        assert audit["max_affected_urls"] == 3
        assert audit["severity_policy"] == "first_seen"


# ===========================================================================
# 5. CLI commands (smoke test via CliRunner)
# ===========================================================================
class TestCLICommands:
    """CLI help should work for all registered commands."""

    def _get_runner_and_app(self):
        from typer.testing import CliRunner
        from techseo.cli import app
        return CliRunner(), app

    def test_main_help(self):
        runner, cli_app = self._get_runner_and_app()
        result = runner.invoke(cli_app, ["--help"])
        assert result.exit_code == 0
        assert "Technical SEO health" in result.output

    @pytest.mark.parametrize("command", [
        "score",
        "import-crawl",
        "analyze",
        "report",
        "schema",
        "setup",
        "status",
    ])
    def test_command_help(self, command):
        runner, cli_app = self._get_runner_and_app()
        result = runner.invoke(cli_app, [command, "--help"])
        assert result.exit_code == 0, (
            "Command '" + command + "' --help failed with exit code "
            + str(result.exit_code) + ": " + result.output
        )


# ===========================================================================
# 6. All Python files syntax validation
# ===========================================================================
class TestAllPythonFilesSyntax:
    """Every .py file in techseo/ and tests/ should pass ast.parse."""

    def _collect_python_files(self):
        files = []
        for directory in ("techseo", "tests"):
            base = PROJECT_ROOT / directory
            if base.exists():
                for py_file in base.rglob("*.py"):
                    parts = py_file.parts
                    if "venv" in parts or "__pycache__" in parts:
                        continue
                    files.append(py_file)
        return sorted(files)

    def test_all_python_files_parse(self):
        py_files = self._collect_python_files()
        assert len(py_files) > 0, "No Python files found"
        errors = []
        for py_file in py_files:
            try:
                ast.parse(py_file.read_text(encoding="utf-8"))
            except SyntaxError as exc:
                rel = py_file.relative_to(PROJECT_ROOT)
                errors.append(str(rel) + ": " + str(exc))
        if errors:
            pytest.fail("Python syntax errors:\n" + "\n".join(errors[:20]))


# ===========================================================================
# 7. Requirements / key packages importable
# ===========================================================================
class TestRequirementsInstallable:
    """Key packages from requirements.txt should be importable."""

    @pytest.mark.parametrize("package", [
        "typer",
        "rich",
        "sqlalchemy",
        "yaml",  # PyYAML
        "dotenv",  # python-dotenv
        "bs4",   # beautifulsoup4
    ])
    def test_package_importable(self, package):
        try:
            importlib.import_module(package)
        except ImportError:
            pytest.skip("Package not installed: " + package)
