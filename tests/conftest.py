"""Shared pytest fixtures for IllustrateLab tests."""

from __future__ import annotations

import io
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from illustratelab.api import main
from illustratelab.api.models import GenerateRequest, Palette
from illustratelab.core.config import IllustrateLabConfig


@pytest.fixture
def anyio_backend() -> str:
    """Run ``pytest.mark.anyio`` tests on asyncio only."""
    return "asyncio"


@pytest.fixture
def test_config() -> IllustrateLabConfig:
    """Create a configuration with no provider credentials.

    Explicit ``None`` values override anything present in the environment
    or a local ``.env`` file.

    Returns:
        IllustrateLabConfig instance for testing
    """
    return IllustrateLabConfig(
        _env_file=None,
        cloudflare_account_id=None,
        cloudflare_api_token=None,
        hf_token=None,
        provider_timeout=5.0,
    )


@pytest.fixture
def test_client(monkeypatch, test_config: IllustrateLabConfig) -> Generator[TestClient, None, None]:
    """FastAPI TestClient running the app lifespan against ``test_config``.

    Yields:
        TestClient with startup complete (provider chain on ``app.state``)
    """
    monkeypatch.setattr(main, "config", test_config)
    with TestClient(main.app) as client:
        yield client


@pytest.fixture
def sample_request() -> GenerateRequest:
    """The reference request from the form defaults, forced to mock.

    Returns:
        GenerateRequest with known seed inputs
    """
    return GenerateRequest(
        prompt="A cheerful robot watering houseplants",
        illustration_type="flat vector scene",
        style="clean",
        complexity="medium",
        palette=Palette(primary="#57a6ff", secondary="#22d3a6", accent="#ffd166"),
        output="svg",
        force_mock=True,
    )


@pytest.fixture
def sample_payload() -> dict:
    """Wire-format JSON payload matching ``sample_request``.

    Returns:
        Dictionary suitable for ``POST /api/generate``
    """
    return {
        "prompt": "A cheerful robot watering houseplants",
        "illustrationType": "flat vector scene",
        "style": "clean",
        "complexity": "medium",
        "palette": {
            "primary": "#57a6ff",
            "secondary": "#22d3a6",
            "accent": "#ffd166",
            "monochrome": False,
        },
        "output": "svg",
        "forceMock": True,
    }


@pytest.fixture
def png_bytes() -> bytes:
    """A small real PNG image.

    Returns:
        Encoded PNG bytes of an 8x8 red square
    """
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), color=(255, 0, 0)).save(buffer, format="PNG")
    return buffer.getvalue()
