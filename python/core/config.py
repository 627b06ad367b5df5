import os
import json
import logging
from typing import List, Optional
from pydantic import BaseModel, Field
from dotenv import load_dotenv

logger = logging.getLogger("Relay.Config")

load_dotenv()

CONFIG_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), '../../config/config.json'))

DEFAULT_ALLOWED_ORIGINS = [
    "https://miyagi-sensei-098.github.io",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

# env var -> settings field
ENV_OVERRIDES = {
    "HOST": "host",
    "PORT": "port",
    "GEMINI_API_KEY": "gemini_api_key",
    "GEMINI_MODEL": "gemini_model",
    "GEMINI_API_BASE": "gemini_api_base",
    "UPSTREAM_TIMEOUT": "upstream_timeout",
    "APP_ENV": "app_env",
    "CORS_ALLOWED_ORIGINS": "cors_allowed_origins",
    "LOG_VERBOSE": "log_verbose",
    "TRANSLATE_API_URL": "translate_api_url",
}


class RelaySettings(BaseModel):
    """Runtime settings for the relay server and its CLI client"""
    host: str = "127.0.0.1"
    port: int = 3000
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-pro"
    gemini_api_base: str = "https://generativelanguage.googleapis.com/v1beta"
    upstream_timeout: float = 30.0
    app_env: str = "production"
    cors_allowed_origins: List[str] = Field(default_factory=lambda: ["*"])
    log_verbose: bool = False
    translate_api_url: str = "http://localhost:3000"

    @property
    def is_development(self) -> bool:
        return self.app_env.lower() == "development"

    @property
    def cors_wildcard(self) -> bool:
        return "*" in self.cors_allowed_origins

    @property
    def gemini_endpoint(self) -> str:
        return f"{self.gemini_api_base.rstrip('/')}/models/{self.gemini_model}:generateContent"


def parse_origins(value) -> List[str]:
    if isinstance(value, list):
        return [str(v).strip() for v in value if str(v).strip()]
    value = str(value or "").strip()
    if not value:
        return []
    if value.lower() == "default":
        return list(DEFAULT_ALLOWED_ORIGINS)
    return [o.strip() for o in value.split(",") if o.strip()]


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _load_file_config(path: str) -> dict:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return data.get('system_settings', {}).get('translation_relay', {}) or {}
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as e:
        logger.warning(f"Ignoring unreadable config file {path}: {e}")
        return {}


def get_settings(config_path: Optional[str] = None) -> RelaySettings:
    """
    Builds settings from config/config.json, then the environment on top.
    Re-read on every call so a changed environment applies without restart.
    """
    config_data = _load_file_config(config_path or CONFIG_PATH)

    for env_key, field in ENV_OVERRIDES.items():
        env_value = os.getenv(env_key)
        if env_value is not None and env_value != "":
            config_data[field] = env_value

    if "cors_allowed_origins" in config_data:
        config_data["cors_allowed_origins"] = parse_origins(config_data["cors_allowed_origins"]) or ["*"]
    if "log_verbose" in config_data:
        config_data["log_verbose"] = _parse_bool(config_data["log_verbose"])

    return RelaySettings(**config_data)
