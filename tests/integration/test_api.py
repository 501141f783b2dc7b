"""Integration tests for illustratelab.api.main — FastAPI REST API endpoints.

All tests use the FastAPI TestClient with no provider credentials, so no
outbound HTTP requests are made.  Where a remote image is needed the provider
chain on ``app.state`` is replaced with an in-process stub.  Tests cover every
endpoint:

- ``GET /`` — HTML page serving.
- ``GET /api/config`` — Configuration delivery.
- ``POST /api/generate`` — Placeholder and provider generation, error envelopes.
- ``POST /api/prompt/compile`` — Prompt preview.
- ``GET /static/...`` — Static asset serving.
"""

from __future__ import annotations

import json
from urllib.parse import unquote

import pytest

from illustratelab.api.models import INVALID_BODY_MESSAGE, INVALID_JSON_MESSAGE
from illustratelab.api.providers import ImageProvider, ProviderChain

SVG_DATA_URL_PREFIX = "data:image/svg+xml;charset=utf-8,"


class _StubProvider(ImageProvider):
    """Provider that returns a canned data URL and records prompts."""

    def __init__(self, mode, data_url):
        super().__init__(client=None)
        self.name = f"stub-{mode}"
        self.mode = mode
        self._data_url = data_url
        self.prompts: list[str] = []

    def is_configured(self) -> bool:
        return True

    async def attempt(self, prompt: str) -> str | None:
        self.prompts.append(prompt)
        return self._data_url


class _ExplodingChain:
    """Chain stand-in whose run() raises an unexpected error."""

    async def run(self, prompt: str):
        raise RuntimeError("renderer exploded")


def _install_chain(test_client, *providers) -> None:
    test_client.app.state.provider_chain = ProviderChain(list(providers))


# ---------------------------------------------------------------------------
# Index page and static asset tests.
# ---------------------------------------------------------------------------


class TestIndexPage:
    """Test GET / — main HTML page."""

    def test_index_returns_html(self, test_client):
        """GET / should return 200 with HTML content."""
        resp = test_client.get("/")
        assert resp.status_code == 200
        assert "text/html" in resp.headers["content-type"]
        assert "IllustrateLab" in resp.text

    def test_missing_template_returns_404(self, test_client, test_config, tmp_path, monkeypatch):
        monkeypatch.setattr(test_config, "templates_dir", tmp_path)
        resp = test_client.get("/")
        assert resp.status_code == 404

    def test_static_script_served(self, test_client):
        resp = test_client.get("/static/js/app.js")
        assert resp.status_code == 200
        assert "HISTORY_LIMIT" in resp.text


# ---------------------------------------------------------------------------
# Configuration endpoint tests.
# ---------------------------------------------------------------------------


class TestGetConfig:
    """Test GET /api/config — application configuration."""

    def test_config_returns_option_sets(self, test_client):
        data = test_client.get("/api/config").json()
        assert "version" in data
        assert data["style_options"] == ["clean", "playful", "corporate", "sketchy", "bold"]
        assert data["complexity_options"] == ["simple", "medium", "detailed"]
        assert data["output_options"] == ["svg", "png"]
        assert len(data["illustration_types"]) == 6

    def test_config_returns_defaults_in_wire_format(self, test_client):
        defaults = test_client.get("/api/config").json()["defaults"]
        assert defaults["prompt"] == "A cheerful robot watering houseplants"
        assert defaults["illustrationType"] == "flat vector scene"
        assert defaults["output"] == "svg"
        assert defaults["forceMock"] is False
        assert defaults["palette"]["primary"] == "#57a6ff"

    def test_providers_disabled_without_credentials(self, test_client):
        providers = test_client.get("/api/config").json()["providers"]
        assert providers == {"cloudflare": False, "huggingFace": False}

    def test_providers_reflect_credentials(self, test_client, test_config, monkeypatch):
        monkeypatch.setattr(test_config, "hf_token", "hf-token")
        providers = test_client.get("/api/config").json()["providers"]
        assert providers == {"cloudflare": False, "huggingFace": True}


# ---------------------------------------------------------------------------
# Generation endpoint tests.
# ---------------------------------------------------------------------------


class TestGeneratePlaceholder:
    """Test POST /api/generate when the placeholder is served."""

    def test_generate_svg(self, test_client, sample_payload):
        resp = test_client.post("/api/generate", json=sample_payload)
        assert resp.status_code == 200

        data = resp.json()
        assert data["ok"] is True
        assert data["mode"] == "mock"
        assert data["svg"].startswith('<?xml version="1.0" encoding="UTF-8"?>')
        assert data["pngDataUrl"].startswith(SVG_DATA_URL_PREFIX)
        assert unquote(data["pngDataUrl"][len(SVG_DATA_URL_PREFIX):]) == data["svg"]

    def test_generate_is_deterministic(self, test_client, sample_payload):
        first = test_client.post("/api/generate", json=sample_payload).json()
        second = test_client.post("/api/generate", json=sample_payload).json()
        assert first == second
        assert first["svg"].count("<circle ") == 7

    def test_png_without_providers_falls_back(self, test_client, sample_payload):
        payload = {**sample_payload, "output": "png", "forceMock": False}
        data = test_client.post("/api/generate", json=payload).json()
        assert data["mode"] == "mock"
        assert "svg" in data

    def test_svg_output_never_calls_providers(self, test_client, sample_payload):
        provider = _StubProvider("cloudflare", "data:image/png;base64,AAAA")
        _install_chain(test_client, provider)

        payload = {**sample_payload, "output": "svg", "forceMock": False}
        data = test_client.post("/api/generate", json=payload).json()

        assert data["mode"] == "mock"
        assert provider.prompts == []

    def test_force_mock_skips_providers(self, test_client, sample_payload):
        provider = _StubProvider("cloudflare", "data:image/png;base64,AAAA")
        _install_chain(test_client, provider)

        payload = {**sample_payload, "output": "png", "forceMock": True}
        data = test_client.post("/api/generate", json=payload).json()

        assert data["mode"] == "mock"
        assert provider.prompts == []

    def test_prompt_is_trimmed_before_rendering(self, test_client, sample_payload):
        padded = {**sample_payload, "prompt": "   " + sample_payload["prompt"] + "  "}
        assert (
            test_client.post("/api/generate", json=padded).json()
            == test_client.post("/api/generate", json=sample_payload).json()
        )


class TestGenerateProviders:
    """Test POST /api/generate when a remote provider serves the request."""

    @pytest.mark.parametrize("mode", ["cloudflare", "hf"])
    def test_provider_image_returned(self, test_client, sample_payload, mode):
        _install_chain(test_client, _StubProvider(mode, "data:image/png;base64,AAAA"))

        payload = {**sample_payload, "output": "png", "forceMock": False}
        data = test_client.post("/api/generate", json=payload).json()

        assert data == {"ok": True, "mode": mode, "pngDataUrl": "data:image/png;base64,AAAA"}

    def test_first_provider_failing_uses_second(self, test_client, sample_payload):
        cloudflare = _StubProvider("cloudflare", None)
        huggingface = _StubProvider("hf", "data:image/png;base64,BBBB")
        _install_chain(test_client, cloudflare, huggingface)

        payload = {**sample_payload, "output": "png", "forceMock": False}
        data = test_client.post("/api/generate", json=payload).json()

        assert data["mode"] == "hf"
        assert len(cloudflare.prompts) == 1

    def test_providers_receive_user_prompt_by_default(self, test_client, sample_payload):
        cloudflare = _StubProvider("cloudflare", None)
        huggingface = _StubProvider("hf", "data:image/png;base64,AAAA")
        _install_chain(test_client, cloudflare, huggingface)

        payload = {
            **sample_payload,
            "prompt": "  " + sample_payload["prompt"],
            "output": "png",
            "forceMock": False,
        }
        test_client.post("/api/generate", json=payload)

        assert cloudflare.prompts == [sample_payload["prompt"]]
        assert huggingface.prompts == [sample_payload["prompt"]]

    def test_providers_receive_compiled_prompt_when_composition_enabled(
        self, test_client, test_config, sample_payload, monkeypatch
    ):
        monkeypatch.setattr(test_config, "compose_provider_prompt", True)
        provider = _StubProvider("hf", "data:image/png;base64,AAAA")
        _install_chain(test_client, provider)

        payload = {**sample_payload, "output": "png", "forceMock": False}
        test_client.post("/api/generate", json=payload)

        sent = provider.prompts[0]
        assert sent.startswith(sample_payload["prompt"] + "\n\n")
        assert "Colour palette" in sent

    def test_unexpected_error_returns_500(self, test_client, sample_payload):
        test_client.app.state.provider_chain = _ExplodingChain()

        payload = {**sample_payload, "output": "png", "forceMock": False}
        resp = test_client.post("/api/generate", json=payload)

        assert resp.status_code == 500
        assert resp.json() == {"ok": False, "error": "Generation failed: renderer exploded"}


class TestGenerateValidation:
    """Test POST /api/generate error envelopes for bad input."""

    def test_invalid_json(self, test_client):
        resp = test_client.post(
            "/api/generate",
            content=b'{"prompt": "unterminated',
            headers={"content-type": "application/json"},
        )
        assert resp.status_code == 400
        assert resp.json() == {"ok": False, "error": INVALID_JSON_MESSAGE}

    @pytest.mark.parametrize("headers", [{}, {"content-type": "application/json"}])
    def test_empty_body_is_invalid_json(self, test_client, headers):
        resp = test_client.post("/api/generate", content=b"", headers=headers)
        assert resp.status_code == 400
        assert resp.json() == {"ok": False, "error": INVALID_JSON_MESSAGE}

    def test_plain_text_body_is_parsed(self, test_client, sample_payload):
        """The body is read as JSON whatever the Content-Type header says."""
        resp = test_client.post(
            "/api/generate",
            content=json.dumps(sample_payload),
            headers={"content-type": "text/plain;charset=UTF-8"},
        )
        assert resp.status_code == 200
        assert resp.json()["mode"] == "mock"

    def test_body_without_content_type_is_parsed(self, test_client, sample_payload):
        resp = test_client.post("/api/generate", content=json.dumps(sample_payload).encode("utf-8"))
        assert resp.status_code == 200
        assert resp.json() == test_client.post("/api/generate", json=sample_payload).json()

    def test_plain_text_invalid_json(self, test_client):
        resp = test_client.post(
            "/api/generate", content=b"prompt=robot", headers={"content-type": "text/plain"}
        )
        assert resp.status_code == 400
        assert resp.json() == {"ok": False, "error": INVALID_JSON_MESSAGE}

    @pytest.mark.parametrize(
        "overrides",
        [
            {"prompt": "   "},
            {"prompt": 7},
            {"style": "watercolour"},
            {"illustrationType": "mural"},
            {"complexity": "extreme"},
            {"output": "gif"},
            {"palette": {"primary": "blue", "secondary": "#fff", "accent": "#fff"}},
            {"palette": {"primary": "#fff", "secondary": "#fff"}},
        ],
    )
    def test_invalid_body(self, test_client, sample_payload, overrides):
        resp = test_client.post("/api/generate", json={**sample_payload, **overrides})
        assert resp.status_code == 400
        assert resp.json() == {"ok": False, "error": INVALID_BODY_MESSAGE}

    def test_missing_field(self, test_client, sample_payload):
        payload = dict(sample_payload)
        del payload["output"]
        resp = test_client.post("/api/generate", json=payload)
        assert resp.status_code == 400
        assert resp.json()["error"] == INVALID_BODY_MESSAGE

    def test_non_object_body(self, test_client):
        resp = test_client.post("/api/generate", json=["not", "an", "object"])
        assert resp.status_code == 400
        assert resp.json()["ok"] is False


# ---------------------------------------------------------------------------
# Prompt compile endpoint tests.
# ---------------------------------------------------------------------------


class TestCompilePrompt:
    """Test POST /api/prompt/compile — prompt preview."""

    def test_compile_returns_bare_prompt_by_default(self, test_client, sample_payload):
        resp = test_client.post("/api/prompt/compile", json=sample_payload)
        assert resp.status_code == 200
        assert resp.json() == {"compiled_prompt": sample_payload["prompt"]}

    def test_compile_with_composition(self, test_client, test_config, sample_payload, monkeypatch):
        monkeypatch.setattr(test_config, "compose_provider_prompt", True)
        resp = test_client.post("/api/prompt/compile", json=sample_payload)
        compiled = resp.json()["compiled_prompt"]
        assert compiled.split("\n\n")[0] == sample_payload["prompt"]
        assert "A flat vector scene" in compiled

    def test_compile_accepts_plain_text_body(self, test_client, sample_payload):
        resp = test_client.post(
            "/api/prompt/compile",
            content=json.dumps(sample_payload),
            headers={"content-type": "text/plain"},
        )
        assert resp.status_code == 200
        assert resp.json() == {"compiled_prompt": sample_payload["prompt"]}

    def test_compile_rejects_invalid_body(self, test_client, sample_payload):
        resp = test_client.post("/api/prompt/compile", json={**sample_payload, "prompt": ""})
        assert resp.status_code == 400
        assert resp.json()["error"] == INVALID_BODY_MESSAGE
