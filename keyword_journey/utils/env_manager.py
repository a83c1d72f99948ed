"""Read/write access to the ``.env`` file that holds API credentials.

Backs the dashboard Settings page and the ``status`` CLI command.
"""

import logging
import os
import shutil
from datetime import datetime
from pathlib import Path
from typing import Optional

from dotenv import dotenv_values

logger = logging.getLogger(__name__)


class EnvManager:
    """Manages the .env file for OpenAI, Gemini and Naver credentials."""

    API_KEY_REGISTRY = {
        "OPENAI_API_KEY": {
            "category": "AI / LLM",
            "label": "OpenAI API Key",
            "description": "Buyer-journey classification (GPT-5 / GPT-4.1) and marketing insights",
            "required": True,
            "prefix": "sk-",
            "docs_url": "https://platform.openai.com/api-keys",
            "icon": "🤖",
            "is_secret": True,
        },
        "GEMINI_API_KEY": {
            "category": "AI / LLM",
            "label": "Google Gemini API Key",
            "description": "Optional fallback provider for insight generation",
            "required": False,
            "prefix": "AI",
            "docs_url": "https://aistudio.google.com/app/apikey",
            "icon": "💎",
            "is_secret": True,
        },
        "NAVER_API_KEY": {
            "category": "Naver Search Ad",
            "label": "Naver Access License",
            "description": "Search Ad API access license (X-API-KEY header)",
            "required": True,
            "prefix": "",
            "docs_url": "https://searchad.naver.com",
            "icon": "🔑",
            "is_secret": True,
        },
        "NAVER_SECRET_KEY": {
            "category": "Naver Search Ad",
            "label": "Naver Secret Key",
            "description": "Used to sign every keywordstool request (HMAC-SHA256)",
            "required": True,
            "prefix": "",
            "docs_url": "https://searchad.naver.com",
            "icon": "🔒",
            "is_secret": True,
        },
        "NAVER_CUSTOMER_ID": {
            "category": "Naver Search Ad",
            "label": "Naver Customer ID",
            "description": "Numeric advertiser account ID (X-Customer header)",
            "required": True,
            "prefix": "",
            "docs_url": "https://searchad.naver.com",
            "icon": "👤",
        },
        "LOG_LEVEL": {
            "category": "App Settings",
            "label": "Log Level",
            "description": "Logging verbosity: DEBUG, INFO, WARNING, ERROR",
            "required": False,
            "prefix": "",
            "docs_url": "",
            "icon": "📋",
        },
    }

    def __init__(self, env_path: Optional[str] = None):
        if env_path:
            self.env_path = Path(env_path)
        else:
            self.env_path = Path(__file__).resolve().parent.parent.parent / ".env"

    def load_env(self) -> dict[str, str]:
        """Load all variables from the .env file (empty dict if it does not exist)."""
        if not self.env_path.exists():
            return {}
        return {k: (v or "") for k, v in dotenv_values(self.env_path).items()}

    def save_env(self, env_vars: dict[str, str]) -> None:
        """Write variables grouped by registry category; the previous file is kept as a backup."""
        if self.env_path.exists():
            shutil.copyfile(self.env_path, self.env_path.with_name(self.env_path.name + ".backup"))

        categories: dict[str, list[str]] = {}
        for key, meta in self.API_KEY_REGISTRY.items():
            categories.setdefault(meta["category"], []).append(key)

        lines = [
            "# Keyword Journey - Environment Configuration",
            "# Last updated: " + datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            "# Keep this file private.",
            "",
        ]
        for category, keys in categories.items():
            lines.append("# " + "=" * 50)
            lines.append("# " + category)
            lines.append("# " + "=" * 50)
            for key in keys:
                lines.append("# " + self.API_KEY_REGISTRY[key]["description"])
                lines.append(self._format_line(key, env_vars.get(key, "")))
                lines.append("")

        custom_keys = [k for k in env_vars if k not in self.API_KEY_REGISTRY]
        if custom_keys:
            lines.append("# " + "=" * 50)
            lines.append("# Custom / Additional Keys")
            lines.append("# " + "=" * 50)
            for key in custom_keys:
                lines.append(self._format_line(key, env_vars[key]))

        self.env_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.env_path, "w", encoding="utf-8") as fh:
            fh.write("\n".join(lines) + "\n")
        logger.info("Saved %d keys to %s", len(env_vars), self.env_path)

    def get_key(self, key_name: str) -> Optional[str]:
        """Value from the .env file, then the process environment; None if unset."""
        value = self.load_env().get(key_name, "") or os.environ.get(key_name, "")
        return value or None

    def set_key(self, key_name: str, value: str) -> None:
        env_vars = self.load_env()
        env_vars[key_name] = value
        self.save_env(env_vars)
        os.environ[key_name] = value

    def delete_key(self, key_name: str) -> None:
        env_vars = self.load_env()
        env_vars.pop(key_name, None)
        self.save_env(env_vars)
        os.environ.pop(key_name, None)

    def get_status(self) -> dict[str, dict]:
        """Configuration status for every registered key, secrets masked."""
        env_vars = self.load_env()
        status = {}
        for key, meta in self.API_KEY_REGISTRY.items():
            value = env_vars.get(key, "") or os.environ.get(key, "")
            status[key] = {
                **meta,
                "configured": bool(value),
                "masked_value": self.mask_value(value) if meta.get("is_secret") else value,
            }
        return status

    def get_categories(self) -> list[str]:
        return list(dict.fromkeys(meta["category"] for meta in self.API_KEY_REGISTRY.values()))

    def is_openai_configured(self) -> bool:
        return self.get_key("OPENAI_API_KEY") is not None

    def is_naver_configured(self) -> bool:
        return all(
            self.get_key(k) is not None
            for k in ("NAVER_API_KEY", "NAVER_SECRET_KEY", "NAVER_CUSTOMER_ID")
        )

    @staticmethod
    def mask_value(value: str) -> str:
        """Show the first and last four characters only.

        Examples:
            >>> EnvManager.mask_value("sk-abcdefghijklmnop")
            'sk-a***********mnop'
            >>> EnvManager.mask_value("short")
            '*****'
        """
        if not value:
            return ""
        if len(value) <= 10:
            return "*" * len(value)
        return value[:4] + "*" * (len(value) - 8) + value[-4:]

    @staticmethod
    def _format_line(key: str, value: str) -> str:
        if not value:
            return key + "="
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return key + '="' + escaped + '"'

    def ensure_env_exists(self) -> None:
        """Create .env from .env.example, or an empty template, when missing."""
        if self.env_path.exists():
            return
        example_path = self.env_path.parent / ".env.example"
        if example_path.exists():
            shutil.copyfile(example_path, self.env_path)
        else:
            self.save_env({})
