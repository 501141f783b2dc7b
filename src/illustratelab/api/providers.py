"""Remote image providers and the fallback chain.

This module lets the generation endpoint try real text-to-image services
before falling back to the local placeholder.  Each provider wraps one HTTP
API behind the same small interface, and :class:`ProviderChain` walks them in
priority order until one yields an image.

Provider Interface
------------------
Every provider implements:

- ``is_configured()`` - whether its credentials are present
- ``attempt(prompt)`` - one POST request, returning a ``data:`` URL or
  ``None`` when the response carries no usable image

Providers
---------
- **Cloudflare Workers AI** (``mode="cloudflare"``): needs an account id and
  an API token.
- **Hugging Face Inference** (``mode="hf"``): needs an access token.

Response Decoding
-----------------
Both services answer either with raw image bytes or with JSON wrapping a
base64 image under ``result.image`` / ``result.b64_json``.
:func:`response_to_data_url` handles both shapes.  Raw bytes without a
usable content type are identified with Pillow.

Failure Semantics
-----------------
A provider failure (network error, non-2xx status, unrecognised payload) is
logged and treated as "provider unavailable"; the chain moves on and the
caller never sees the error.  There are no retries and no caching.

Usage Example
-------------
    async with httpx.AsyncClient(timeout=config.provider_timeout) as client:
        chain = build_provider_chain(config, client)
        result = await chain.run("a lighthouse at dusk")
        if result is None:
            ...  # fall back to the placeholder
"""

from __future__ import annotations

import base64
import io
import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass

import httpx
from PIL import Image

from illustratelab.api.models import GenerationMode
from illustratelab.core.config import IllustrateLabConfig

logger = logging.getLogger(__name__)

# Errors that mean "this provider is unavailable right now".  ValueError
# covers undecodable JSON bodies.
_PROVIDER_ERRORS = (httpx.HTTPError, httpx.InvalidURL, ValueError)


@dataclass(frozen=True)
class ProviderResult:
    """Image returned by a remote provider.

    Attributes:
        mode: Provider that produced the image.
        png_data_url: Base64 ``data:`` URL of the image.
    """

    mode: GenerationMode
    png_data_url: str


def _sniff_image_mime(body: bytes) -> str | None:
    """Identify raw image bytes with Pillow.

    Returns:
        The MIME type of the detected format, or ``None`` if Pillow cannot
        read the payload as an image.
    """
    try:
        with Image.open(io.BytesIO(body)) as image:
            image_format = image.format
    except (OSError, Image.DecompressionBombError):
        return None

    if not image_format:
        return None
    return Image.MIME.get(image_format, f"image/{image_format.lower()}")


def response_to_data_url(response: httpx.Response) -> str | None:
    """Convert a provider HTTP response into an image ``data:`` URL.

    Args:
        response: Completed provider response.

    Returns:
        ``data:<mime>;base64,<payload>`` or ``None`` when the response is
        non-2xx or does not contain a recognisable image.

    Raises:
        ValueError: If the response claims JSON but the body is not valid
            JSON.
    """
    if not response.is_success:
        return None

    content_type = response.headers.get("content-type", "").lower()

    if "application/json" in content_type:
        payload = response.json()
        result = payload.get("result") if isinstance(payload, dict) else None
        if not isinstance(result, dict):
            return None

        encoded = result.get("image")
        if not isinstance(encoded, str):
            encoded = result.get("b64_json")
        if not isinstance(encoded, str) or not encoded:
            return None
        return f"data:image/png;base64,{encoded}"

    body = response.content
    if not body:
        return None

    mime = content_type.split(";")[0].strip()
    if not mime or mime == "application/octet-stream":
        mime = _sniff_image_mime(body)
    elif not mime.startswith("image/"):
        # HTML error pages and the like are not images.
        return None

    if mime is None:
        return None
    return f"data:{mime};base64,{base64.b64encode(body).decode('ascii')}"


class ImageProvider(ABC):
    """Abstract base class for remote text-to-image providers.

    Attributes
    ----------
    name : str
        Human-readable provider name used in log messages
    mode : GenerationMode
        Value reported to the client when this provider serves a request
    """

    name: str = "Base Image Provider"
    mode: GenerationMode = "mock"

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    @abstractmethod
    def is_configured(self) -> bool:
        """Return True when every credential this provider needs is present."""

    @abstractmethod
    async def attempt(self, prompt: str) -> str | None:
        """Request one image for *prompt*.

        Returns:
            A ``data:`` URL, or ``None`` if the provider answered without a
            usable image.

        Raises:
            httpx.HTTPError: On transport failures.
            ValueError: On malformed JSON payloads.
        """

    async def _post(self, url: str, token: str, payload: dict) -> str | None:
        response = await self._client.post(
            url,
            headers={"Authorization": f"Bearer {token}"},
            json=payload,
        )
        if not response.is_success:
            logger.warning(f"{self.name} responded with HTTP {response.status_code}")
        return response_to_data_url(response)


class CloudflareProvider(ImageProvider):
    """Cloudflare Workers AI text-to-image provider."""

    name = "Cloudflare Workers AI"
    mode: GenerationMode = "cloudflare"
    api_base = "https://api.cloudflare.com/client/v4"

    def __init__(
        self,
        client: httpx.AsyncClient,
        account_id: str | None,
        api_token: str | None,
        model: str,
    ) -> None:
        super().__init__(client)
        self.account_id = account_id
        self.api_token = api_token
        self.model = model

    @property
    def endpoint(self) -> str:
        return f"{self.api_base}/accounts/{self.account_id}/ai/run/{self.model}"

    def is_configured(self) -> bool:
        return bool(self.account_id and self.api_token)

    async def attempt(self, prompt: str) -> str | None:
        return await self._post(self.endpoint, self.api_token or "", {"prompt": prompt})


class HuggingFaceProvider(ImageProvider):
    """Hugging Face Inference API text-to-image provider."""

    name = "Hugging Face Inference"
    mode: GenerationMode = "hf"
    api_base = "https://api-inference.huggingface.co/models"

    def __init__(self, client: httpx.AsyncClient, token: str | None, model: str) -> None:
        super().__init__(client)
        self.token = token
        self.model = model

    @property
    def endpoint(self) -> str:
        return f"{self.api_base}/{self.model}"

    def is_configured(self) -> bool:
        return bool(self.token)

    async def attempt(self, prompt: str) -> str | None:
        return await self._post(self.endpoint, self.token or "", {"inputs": prompt})


class ProviderChain:
    """Ordered list of providers tried one after another.

    Unconfigured providers are skipped.  Failures are logged and swallowed so
    the caller can fall back to the placeholder.  Providers are awaited
    sequentially; the first image wins.
    """

    def __init__(self, providers: Sequence[ImageProvider]) -> None:
        self._providers = list(providers)

    @property
    def providers(self) -> list[ImageProvider]:
        return list(self._providers)

    def configured_modes(self) -> list[str]:
        """Return the modes of providers whose credentials are present."""
        return [provider.mode for provider in self._providers if provider.is_configured()]

    async def run(self, prompt: str) -> ProviderResult | None:
        """Try each configured provider in order.

        Args:
            prompt: Prompt text sent to every provider.

        Returns:
            The first successful :class:`ProviderResult`, or ``None`` if every
            provider was skipped or failed.
        """
        for provider in self._providers:
            if not provider.is_configured():
                logger.debug(f"Skipping {provider.name}: credentials not configured")
                continue

            try:
                data_url = await provider.attempt(prompt)
            except _PROVIDER_ERRORS as e:
                logger.warning(f"{provider.name} request failed: {e!r}")
                continue

            if data_url is None:
                logger.warning(f"{provider.name} returned no usable image")
                continue

            logger.info(f"Image served by {provider.name}")
            return ProviderResult(mode=provider.mode, png_data_url=data_url)

        return None


def build_provider_chain(config: IllustrateLabConfig, client: httpx.AsyncClient) -> ProviderChain:
    """Build the Cloudflare -> Hugging Face chain from explicit settings.

    Args:
        config: Configuration holding provider credentials and model ids.
        client: Shared async HTTP client used for every provider call.

    Returns:
        A :class:`ProviderChain` with both providers in priority order.
        Providers without credentials are included but skipped at run time.
    """
    chain = ProviderChain(
        [
            CloudflareProvider(
                client,
                account_id=config.cloudflare_account_id,
                api_token=config.cloudflare_api_token,
                model=config.cloudflare_model,
            ),
            HuggingFaceProvider(client, token=config.hf_token, model=config.hf_model),
        ]
    )
    logger.info(f"Provider chain built, configured providers: {chain.configured_modes() or 'none'}")
    return chain
