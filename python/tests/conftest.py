"""
Pytest configuration and shared fixtures for translation relay tests.
"""
import os
import sys
import pytest
from unittest.mock import AsyncMock, patch

# Add python directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.config import ENV_OVERRIDES


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every relay setting from the environment."""
    for key in ENV_OVERRIDES:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


@pytest.fixture
def api_key_env(clean_env):
    clean_env.setenv("GEMINI_API_KEY", "test-key")
    return clean_env


@pytest.fixture
def gemini_success_body():
    """Return an upstream generateContent success body."""
    def _build(text="Hola"):
        return {
            "candidates": [
                {"content": {"parts": [{"text": text}], "role": "model"}}
            ]
        }
    return _build


@pytest.fixture
def mock_upstream():
    """Patch the AsyncClient used for upstream calls; yields (client_instance, client_class)."""
    with patch('core.gemini_client.httpx.AsyncClient') as mock_client:
        mock_client_instance = AsyncMock()
        mock_client.return_value.__aenter__.return_value = mock_client_instance
        yield mock_client_instance, mock_client


@pytest.fixture
def relay_client(clean_env):
    """TestClient over an app that reads settings from the environment per request."""
    from fastapi.testclient import TestClient
    from core.api_server import create_app

    app = create_app()
    with TestClient(app) as client:
        yield client
