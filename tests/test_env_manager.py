"""Tests for the .env credential manager."""

import os

import pytest

from keyword_journey.utils.env_manager import EnvManager


@pytest.fixture()
def manager(tmp_path):
    return EnvManager(str(tmp_path / ".env"))


class TestEnvManager:

    def test_missing_file_loads_empty(self, manager):
        assert manager.load_env() == {}

    def test_save_and_load(self, manager):
        manager.save_env({"OPENAI_API_KEY": "sk-abc", "CUSTOM_KEY": 'has "quotes"'})
        values = manager.load_env()

        assert values["OPENAI_API_KEY"] == "sk-abc"
        assert values["CUSTOM_KEY"] == 'has "quotes"'
        assert values["NAVER_API_KEY"] == ""

    @pytest.mark.parametrize("secret", [
        "abc\\ndef",
        "ends\\\\with",
        "C:\\keys\\naver",
        'mix \\" and "',
    ])
    def test_backslashes_survive_save_and_load(self, manager, secret):
        manager.save_env({"NAVER_SECRET_KEY": secret})
        assert manager.load_env()["NAVER_SECRET_KEY"] == secret

    def test_file_grouped_by_category(self, manager):
        manager.save_env({})
        text = manager.env_path.read_text(encoding="utf-8")

        assert "# AI / LLM" in text
        assert "# Naver Search Ad" in text
        assert text.index("OPENAI_API_KEY=") < text.index("NAVER_API_KEY=")

    def test_backup_written(self, manager):
        manager.save_env({"OPENAI_API_KEY": "first"})
        manager.save_env({"OPENAI_API_KEY": "second"})

        backup = manager.env_path.with_name(".env.backup")
        assert backup.exists()
        assert 'OPENAI_API_KEY="first"' in backup.read_text(encoding="utf-8")

    def test_set_and_delete_key(self, manager):
        try:
            manager.set_key("NAVER_CUSTOMER_ID", "1234567")
            assert manager.get_key("NAVER_CUSTOMER_ID") == "1234567"
            assert os.environ["NAVER_CUSTOMER_ID"] == "1234567"

            manager.delete_key("NAVER_CUSTOMER_ID")
            assert manager.get_key("NAVER_CUSTOMER_ID") is None
        finally:
            os.environ.pop("NAVER_CUSTOMER_ID", None)

    def test_get_key_falls_back_to_environment(self, manager, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "from-env")
        assert manager.get_key("GEMINI_API_KEY") == "from-env"

    def test_status_masks_secrets(self, manager):
        manager.save_env({"OPENAI_API_KEY": "sk-abcdefghijklmnop", "LOG_LEVEL": "DEBUG"})
        status = manager.get_status()

        assert status["OPENAI_API_KEY"]["configured"] is True
        assert status["OPENAI_API_KEY"]["masked_value"] == "sk-a***********mnop"
        assert status["LOG_LEVEL"]["masked_value"] == "DEBUG"
        assert status["NAVER_SECRET_KEY"]["configured"] is False

    def test_configured_checks(self, manager):
        assert not manager.is_openai_configured()
        assert not manager.is_naver_configured()

        manager.save_env({"NAVER_API_KEY": "k", "NAVER_SECRET_KEY": "s", "NAVER_CUSTOMER_ID": "c"})
        assert manager.is_naver_configured()

    def test_categories_in_registry_order(self, manager):
        assert manager.get_categories() == ["AI / LLM", "Naver Search Ad", "App Settings"]

    @pytest.mark.parametrize("value, expected", [
        ("", ""),
        ("short", "*****"),
        ("0123456789", "**********"),
        ("sk-abcdefghijklmnop", "sk-a***********mnop"),
    ])
    def test_mask_value(self, value, expected):
        assert EnvManager.mask_value(value) == expected

    def test_ensure_env_from_example(self, tmp_path):
        (tmp_path / ".env.example").write_text("LOG_LEVEL=INFO\n", encoding="utf-8")
        manager = EnvManager(str(tmp_path / ".env"))
        manager.ensure_env_exists()

        assert manager.load_env() == {"LOG_LEVEL": "INFO"}

    def test_ensure_env_creates_template(self, manager):
        manager.ensure_env_exists()
        assert manager.env_path.exists()
        assert manager.load_env()["OPENAI_API_KEY"] == ""
