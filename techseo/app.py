"""Application wiring: configuration, environment, database and services."""

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/settings.yaml"


class TechnicalSEOApp:
    """Load settings once and hand out configured collaborators.

    Usage::

        app = TechnicalSEOApp()
        app.initialize()
        service = app.get_service()
        report = service.build_report(crawl_id)
    """

    def __init__(
        self,
        config_path: str = DEFAULT_CONFIG_PATH,
        env_path: str = ".env",
    ):
        self._config_path = config_path
        self._env_path = env_path
        self.config: dict[str, Any] = {}
        self._initialized = False
        self._service = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Load configuration and environment, then initialise the database."""
        if self._initialized:
            return

        env_file = Path(self._env_path)
        if env_file.exists():
            load_dotenv(env_file)
            logger.info("Loaded environment from %s", self._env_path)

        self.config = self._load_config()

        export_dir = self.config.get("app", {}).get("export_dir", "")
        if export_dir:
            Path(export_dir).mkdir(parents=True, exist_ok=True)

        from techseo.database import init_db
        db_cfg = self.config.get("database", {})
        init_db(
            database_url=self._configured_database_url(),
            echo=db_cfg.get("echo", False),
        )

        self._initialized = True
        logger.info("TechnicalSEOApp initialised.")

    def _load_config(self) -> dict[str, Any]:
        """Load the YAML configuration file."""
        config_file = Path(self._config_path)
        if not config_file.exists():
            logger.warning("Config file not found: %s, using defaults.", self._config_path)
            return {}
        with open(config_file, "r", encoding="utf-8") as fh:
            config = yaml.safe_load(fh) or {}
        logger.info("Configuration loaded from %s", self._config_path)
        return config

    # ------------------------------------------------------------------
    # Collaborators
    # ------------------------------------------------------------------

    def get_engine(self, **overrides: Any):
        """Return an IssueAggregationEngine built from the ``audit`` section."""
        from techseo.modules.technical_audit.aggregator import IssueAggregationEngine

        audit_cfg = dict(self.config.get("audit", {}))
        audit_cfg.update({k: v for k, v in overrides.items() if v is not None})
        return IssueAggregationEngine(
            max_affected_urls=audit_cfg.get("max_affected_urls", 3),
            severity_policy=audit_cfg.get("severity_policy", "first_seen"),
        )

    def get_service(self):
        """Lazy-initialise and return the TechnicalSEOService."""
        self._ensure_initialized()
        if self._service is None:
            from techseo.modules.technical_audit.service import TechnicalSEOService
            self._service = TechnicalSEOService(engine=self.get_engine())
        return self._service

    @property
    def export_dir(self) -> str:
        return self.config.get("app", {}).get("export_dir", "data/exports")

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def get_status(self) -> dict[str, dict[str, Any]]:
        """Return health status of the database and configuration."""
        self._ensure_initialized()
        status: dict[str, dict[str, Any]] = {}

        try:
            from techseo.database import table_names
            tables = table_names()
            status["database"] = {"status": "ok", "details": f"{len(tables)} tables"}
        except Exception as exc:
            status["database"] = {"status": "error", "details": str(exc)}

        status["config"] = {
            "status": "ok" if self.config else "warning",
            "details": f"{len(self.config)} sections loaded" if self.config else "no config",
        }

        from techseo.database import DEFAULT_DATABASE_URL, resolve_database_url
        db_url = resolve_database_url(self._configured_database_url())
        status["database_url"] = {
            "status": "warning" if db_url == DEFAULT_DATABASE_URL else "ok",
            "details": db_url,
        }
        return status

    def _configured_database_url(self):
        # DATABASE_URL wins over the config file.
        return os.getenv("DATABASE_URL") or self.config.get("database", {}).get("url")

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise RuntimeError("Call initialize() before using the application.")
