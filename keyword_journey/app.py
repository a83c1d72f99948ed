"""Application wiring: configuration, credentials and service construction."""

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from keyword_journey.integrations.llm_client import LLMClient
from keyword_journey.integrations.naver_searchad import NAVER_SEARCHAD_BASE_URL, NaverSearchAdClient
from keyword_journey.modules.buyer_journey.backend import OpenAIJourneyBackend
from keyword_journey.modules.buyer_journey.classifier import BATCH_SIZE, MAX_RETRIES, BatchClassifier, RetryPolicy
from keyword_journey.modules.buyer_journey.service import AVAILABLE_MODELS, DEFAULT_MODEL, JourneyAnalysisService
from keyword_journey.modules.insights.generator import InsightGenerator
from keyword_journey.modules.keyword_stats.service import KeywordStatsService

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "config" / "settings.yaml"
DEFAULT_ENV_PATH = PROJECT_ROOT / ".env"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class KeywordJourneyApp:
    """Builds the services shared by the API, CLI and dashboard.

    Services are created on first use and cached; call ``reset()`` after
    credentials change so the next access picks them up.

    Usage::

        app = KeywordJourneyApp()
        app.initialize()
        analysis = await app.journey_service.analyze(["카페 추천"], "gpt-4.1")
    """

    def __init__(
        self,
        config_path: Optional[str] = None,
        env_path: Optional[str] = None,
        journey_service: Optional[JourneyAnalysisService] = None,
        stats_service: Optional[KeywordStatsService] = None,
        insight_generator: Optional[InsightGenerator] = None,
    ):
        self._config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        self._env_path = Path(env_path) if env_path else DEFAULT_ENV_PATH
        self.config: dict[str, Any] = {}
        self._initialized = False
        self._journey_service = journey_service
        self._stats_service = stats_service
        self._insight_generator = insight_generator
        self._llm_client: Optional[LLMClient] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Load .env and the YAML config. Safe to call more than once."""
        if self._initialized:
            return
        if self._env_path.exists():
            load_dotenv(self._env_path)
            logger.info("Loaded environment from %s", self._env_path)
        self.config = self._load_config()
        self._initialized = True
        logger.info("KeywordJourneyApp initialised.")

    def reset(self) -> None:
        """Drop cached services so they are rebuilt from the current environment."""
        self._journey_service = None
        self._stats_service = None
        self._insight_generator = None
        self._llm_client = None

    def _load_config(self) -> dict[str, Any]:
        if not self._config_path.exists():
            logger.warning("Config file not found: %s, using defaults.", self._config_path)
            return {}
        with open(self._config_path, "r", encoding="utf-8") as fh:
            config = yaml.safe_load(fh) or {}
        logger.info("Configuration loaded from %s", self._config_path)
        return config

    def section(self, name: str) -> dict[str, Any]:
        self._ensure_initialized()
        return self.config.get(name) or {}

    @property
    def default_model(self) -> str:
        return self.section("llm").get("default_model", DEFAULT_MODEL)

    @property
    def available_models(self) -> list[tuple[str, str]]:
        """(model id, label) pairs offered for classification, from ``llm.available_models``."""
        configured = self.section("llm").get("available_models")
        if not configured:
            return list(AVAILABLE_MODELS)
        labels = dict(AVAILABLE_MODELS)
        return [(model, labels.get(model, model)) for model in configured]

    @property
    def log_level(self) -> str:
        """``LOG_LEVEL`` from the environment, else ``app.log_level``; INFO when unset or unknown."""
        level = str(os.getenv("LOG_LEVEL") or self.section("app").get("log_level") or "INFO").upper()
        if level not in LOG_LEVELS:
            logger.warning("Unknown log level %s, using INFO.", level)
            return "INFO"
        return level

    # ------------------------------------------------------------------
    # Service builders
    # ------------------------------------------------------------------

    @property
    def journey_service(self) -> JourneyAnalysisService:
        if self._journey_service is None:
            self._journey_service = JourneyAnalysisService(classifier=self._build_classifier())
        return self._journey_service

    @property
    def stats_service(self) -> KeywordStatsService:
        if self._stats_service is None:
            naver_cfg = self.section("naver")
            client = NaverSearchAdClient(
                base_url=naver_cfg.get("base_url", NAVER_SEARCHAD_BASE_URL),
                timeout=float(naver_cfg.get("timeout", 30)),
            )
            self._stats_service = KeywordStatsService(client)
        return self._stats_service

    @property
    def llm_client(self) -> LLMClient:
        if self._llm_client is None:
            llm_cfg = self.section("llm")
            fallback = llm_cfg.get("fallback") or {}
            cache_cfg = llm_cfg.get("cache") or {}
            self._llm_client = LLMClient(
                openai_model=llm_cfg.get("insight_model", "gpt-4.1"),
                gemini_model=fallback.get("model", "gemini-2.0-flash"),
                max_tokens=llm_cfg.get("insight_max_tokens", 2000),
                temperature=llm_cfg.get("insight_temperature", 0.7),
                timeout=float(llm_cfg.get("timeout", 60)),
                openai_rpm=llm_cfg.get("requests_per_minute", 60),
                gemini_rpm=fallback.get("requests_per_minute", 15),
                cache_enabled=cache_cfg.get("enabled", True),
                cache_ttl_hours=cache_cfg.get("ttl_hours", 24),
            )
        return self._llm_client

    @property
    def insight_generator(self) -> InsightGenerator:
        if self._insight_generator is None:
            llm_cfg = self.section("llm")
            self._insight_generator = InsightGenerator(
                self.llm_client,
                model=llm_cfg.get("insight_model", "gpt-4.1"),
                temperature=llm_cfg.get("insight_temperature", 0.7),
                max_tokens=llm_cfg.get("insight_max_tokens", 2000),
            )
        return self._insight_generator

    def _build_classifier(self) -> Optional[BatchClassifier]:
        """None when no OpenAI key is set, which puts the service in dummy mode."""
        api_key = os.getenv("OPENAI_API_KEY", "")
        if not api_key:
            return None
        llm_cfg = self.section("llm")
        cls_cfg = self.section("classifier")
        backend = OpenAIJourneyBackend(
            api_key=api_key,
            timeout=float(llm_cfg.get("timeout", 60)),
            temperature=llm_cfg.get("temperature", 0.3),
            max_tokens=llm_cfg.get("max_tokens", 2000),
        )
        return BatchClassifier(
            backend,
            batch_size=cls_cfg.get("batch_size", BATCH_SIZE),
            retry_policy=RetryPolicy(
                max_retries=cls_cfg.get("max_retries", MAX_RETRIES),
                base_delay=float(cls_cfg.get("base_delay_seconds", 1.0)),
            ),
            max_concurrency=cls_cfg.get("max_concurrency"),
        )

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def get_status(self) -> dict[str, dict[str, Any]]:
        """Health of each provider and of the configuration."""
        self._ensure_initialized()
        status: dict[str, dict[str, Any]] = {}

        openai_configured = bool(os.getenv("OPENAI_API_KEY"))
        status["openai"] = {
            "status": "ok" if openai_configured else "warning",
            "details": "classification model " + self.default_model if openai_configured
            else "not configured, dummy classification",
        }

        gemini_configured = bool(os.getenv("GEMINI_API_KEY"))
        status["gemini"] = {
            "status": "ok" if gemini_configured else "warning",
            "details": "insight fallback enabled" if gemini_configured else "not configured",
        }

        naver_configured = self.stats_service.is_configured
        status["naver"] = {
            "status": "ok" if naver_configured else "warning",
            "details": "keywordstool ready" if naver_configured else "not configured, dummy keyword data",
        }

        status["config"] = {
            "status": "ok" if self.config else "warning",
            "details": str(len(self.config)) + " sections loaded" if self.config else "no config",
        }
        return status

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise RuntimeError("Call initialize() before using the application.")
