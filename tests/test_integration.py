"""Integration tests for Keyword Journey.

Covers module imports, configuration loading, CLI smoke tests,
end-to-end CLI runs in dummy mode, and syntax validation of every
Python file in the project.
"""

import ast
import importlib
import json
import logging
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Project root (conftest.py already puts it on sys.path)
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parent.parent


# ===========================================================================
# 1. Module imports
# ===========================================================================
class TestModuleImports:
    """All module packages should expose their public classes."""

    @pytest.mark.parametrize("module_path,names", [
        ("keyword_journey.modules.buyer_journey", [
            "JourneyStage", "BatchClassifier", "RetryPolicy", "JourneyAnalysisService",
            "OpenAIJourneyBackend", "annotate_keywords",
        ]),
        ("keyword_journey.modules.keyword_stats", [
            "KeywordStatsService", "BrandComparison", "compare_brands",
        ]),
        ("keyword_journey.modules.insights", ["InsightGenerator", "INSIGHT_TYPES"]),
        ("keyword_journey.modules.reporting", ["JourneyReportRenderer", "calculate_stage_data"]),
    ])
    def test_module_importable(self, module_path, names):
        mod = importlib.import_module(module_path)
        for name in names:
            assert hasattr(mod, name), (
                name + " not found in " + module_path
            )

    def test_integrations_importable(self):
        from keyword_journey.integrations.llm_client import LLMClient
        from keyword_journey.integrations.naver_searchad import NaverSearchAdClient
        assert LLMClient is not None
        assert NaverSearchAdClient is not None

    def test_api_importable(self):
        from keyword_journey.api import create_app, router
        assert callable(create_app)
        assert {route.path for route in router.routes} >= {
            "/api/health", "/api/keywords", "/api/analyze-journey", "/api/generate-insights",
        }

    def test_version(self):
        import keyword_journey
        assert keyword_journey.__version__


# ===========================================================================
# 2. Settings YAML
# ===========================================================================
class TestSettingsYaml:
    """Configuration file should be loadable."""

    def _load(self):
        import yaml
        settings_path = PROJECT_ROOT / "config" / "settings.yaml"
        with open(settings_path, encoding="utf-8") as fh:
            return yaml.safe_load(fh)

    def test_settings_file_exists(self):
        assert (PROJECT_ROOT / "config" / "settings.yaml").exists(), "config/settings.yaml not found"

    def test_settings_has_required_sections(self):
        config = self._load()
        for section in ("app", "llm", "classifier", "naver"):
            assert section in config, (
                "Missing config section: " + section
            )

    def test_settings_app_name(self):
        assert self._load()["app"]["name"] == "Keyword Journey"

    def test_classifier_defaults(self):
        classifier = self._load()["classifier"]
        assert classifier["batch_size"] == 50
        assert classifier["max_retries"] == 2
        assert classifier["max_concurrency"] is None

    def test_default_model_is_available(self):
        llm = self._load()["llm"]
        assert llm["default_model"] in llm["available_models"]


# ===========================================================================
# 3. CLI commands (smoke test via CliRunner)
# ===========================================================================
class TestCLICommands:
    """CLI help should work for all registered commands."""

    def _get_runner_and_app(self):
        from typer.testing import CliRunner
        from keyword_journey.cli import app
        return CliRunner(), app

    def test_main_help(self):
        runner, cli_app = self._get_runner_and_app()
        result = runner.invoke(cli_app, ["--help"])
        assert result.exit_code == 0
        assert "Keyword Journey" in result.output

    @pytest.mark.parametrize("command", [
        "search",
        "classify",
        "analyze",
        "insights",
        "serve",
        "dashboard",
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
# 4. CLI runs without credentials (dummy data)
# ===========================================================================
class TestCLIDummyRuns:

    @pytest.fixture(autouse=True)
    def _isolated_app(self, journey_app, monkeypatch):
        monkeypatch.setattr("keyword_journey.cli._get_journey_app", lambda: journey_app)

    def _invoke(self, args):
        from typer.testing import CliRunner
        from keyword_journey.cli import app
        return CliRunner().invoke(app, args)

    def test_search(self):
        result = self._invoke(["search", "카페"])
        assert result.exit_code == 0, result.output
        assert "카페 추천" in result.output

    def test_classify_json(self):
        result = self._invoke(["classify", "카페 후기", "카페 가격", "--json"])
        assert result.exit_code == 0, result.output
        assert '"source": "dummy"' in result.output
        assert result.output.index("구매 후 행동") < result.output.index("구매 결정")

    def test_classify_requires_keywords(self):
        result = self._invoke(["classify"])
        assert result.exit_code != 0

    def test_analyze_writes_report(self, tmp_path):
        output = tmp_path / "report.json"
        result = self._invoke(["analyze", "카페", "--output", str(output)])

        assert result.exit_code == 0, result.output
        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["seedKeyword"] == "카페"
        assert len(data["keywords"]) == 5
        assert all(row["buyerJourney"] for row in data["keywords"])

    @pytest.mark.parametrize("env_level, args, expected", [
        (None, ["status"], logging.INFO),
        ("WARNING", ["status"], logging.WARNING),
        ("WARNING", ["status", "--verbose"], logging.DEBUG),
    ])
    def test_log_level_applied(self, monkeypatch, env_level, args, expected):
        calls = []
        monkeypatch.setattr("keyword_journey.cli.logging.basicConfig", lambda **kw: calls.append(kw))
        if env_level is None:
            monkeypatch.delenv("LOG_LEVEL", raising=False)
        else:
            monkeypatch.setenv("LOG_LEVEL", env_level)

        result = self._invoke(args)

        assert result.exit_code == 0, result.output
        assert calls[0]["level"] == expected

    def test_dashboard_port_from_config(self, monkeypatch):
        launched = []
        monkeypatch.setattr(
            "keyword_journey.cli.subprocess.run", lambda cmd, check: launched.append(cmd)
        )

        result = self._invoke(["dashboard"])

        assert result.exit_code == 0, result.output
        assert launched[0][-2:] == ["--server.port", "8501"]


# ===========================================================================
# 5. Dashboard pages syntax validation
# ===========================================================================
class TestDashboardPagesSyntax:
    """Every dashboard page file should pass ast.parse."""

    def test_dashboard_app_syntax(self):
        source = (PROJECT_ROOT / "dashboard" / "app.py").read_text(encoding="utf-8")
        try:
            ast.parse(source)
        except SyntaxError as exc:
            pytest.fail("dashboard/app.py has syntax error: " + str(exc))

    def test_expected_pages_present(self):
        pages = {p.stem for p in (PROJECT_ROOT / "dashboard" / "pages").glob("*.py")}
        assert {"keywords", "brand_analysis", "settings"} <= pages

    @pytest.mark.parametrize("page, entry", [
        ("keywords", "render_keywords_page"),
        ("brand_analysis", "render_brand_analysis_page"),
        ("settings", "render_settings_page"),
    ])
    def test_page_defines_entry_point(self, page, entry):
        path = PROJECT_ROOT / "dashboard" / "pages" / (page + ".py")
        tree = ast.parse(path.read_text(encoding="utf-8"))
        functions = {node.name for node in tree.body if isinstance(node, ast.FunctionDef)}
        assert entry in functions


# ===========================================================================
# 6. All Python files syntax validation
# ===========================================================================
class TestAllPythonFilesSyntax:
    """Every .py file in keyword_journey/, dashboard/ and tests/ should pass ast.parse."""

    def _collect_python_files(self):
        files = []
        for directory in ("keyword_journey", "dashboard", "tests"):
            base = PROJECT_ROOT / directory
            if base.exists():
                for py_file in base.rglob("*.py"):
                    if "__pycache__" in py_file.parts:
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
                errors.append(str(py_file.relative_to(PROJECT_ROOT)) + ": " + str(exc))
        if errors:
            msg = "Python syntax errors found in " + str(len(errors)) + " files:\n"
            msg += "\n".join(errors[:20])
            pytest.fail(msg)


# ===========================================================================
# 7. Requirements / key packages importable
# ===========================================================================
class TestRequirementsInstallable:
    """Key packages from requirements.txt should be importable."""

    @pytest.mark.parametrize("package", [
        "typer",
        "rich",
        "yaml",  # PyYAML
        "dotenv",  # python-dotenv
        "httpx",
        "openai",
        "fastapi",
        "uvicorn",
        "plotly",
        "streamlit",
    ])
    def test_package_importable(self, package):
        try:
            importlib.import_module(package)
        except ImportError:
            pytest.skip("Package not installed: " + package)
