"""Configuration management for IllustrateLab.

This module provides centralized configuration management using Pydantic Settings.
Server settings are loaded from environment variables with the ILLUSTRATELAB_
prefix.  Provider credentials additionally accept their conventional unprefixed
names (``CLOUDFLARE_ACCOUNT_ID``, ``HF_TOKEN``, ...), so an existing deployment
environment works unchanged.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Keyword arguments passed to :class:`IllustrateLabConfig`
2. Environment variables
3. .env file in the working directory
4. Default values defined in IllustrateLabConfig

Example .env file:
    CLOUDFLARE_ACCOUNT_ID=0123456789abcdef
    CLOUDFLARE_API_TOKEN=cf-token
    HF_TOKEN=hf_xxx
    ILLUSTRATELAB_SERVER_PORT=7860
    ILLUSTRATELAB_LOG_LEVEL=DEBUG

Provider Gating
---------------
A remote provider is only consulted when all of its credentials are present.
Missing or empty credentials disable the provider without raising, and the
generation endpoint falls back to the local placeholder image.

- Cloudflare Workers AI needs ``cloudflare_account_id`` and
  ``cloudflare_api_token``.
- Hugging Face Inference needs ``hf_token``.

The configuration object is passed explicitly into
:func:`illustratelab.api.providers.build_provider_chain`; the provider code
never reads the process environment itself.

Usage Example
-------------
    from illustratelab.core.config import config

    print(config.cloudflare_enabled)
    print(config.server_port)

    # Custom configuration (tests, scripts)
    custom = IllustrateLabConfig(hf_token="hf_xxx", _env_file=None)
"""

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Package root: src/illustratelab/.  Templates and static assets ship inside
# the package so an installed wheel can serve the frontend.
_PACKAGE_DIR = Path(__file__).resolve().parent.parent


class IllustrateLabConfig(BaseSettings):
    """Main configuration for IllustrateLab.

    Attributes
    ----------
    Provider Settings:
        cloudflare_account_id : str | None
            Cloudflare account identifier for Workers AI
        cloudflare_api_token : str | None
            Cloudflare API token with Workers AI access
        cloudflare_model : str
            Workers AI text-to-image model identifier
        hf_token : str | None
            Hugging Face access token
        hf_model : str
            Hugging Face Inference model identifier
        provider_timeout : float
            Timeout in seconds for each outbound provider request
        compose_provider_prompt : bool
            Fold illustration type, style, complexity and palette into the
            prompt sent to remote providers (off by default: the bare prompt is sent)

    Server Settings:
        server_host : str
            Server bind address (0.0.0.0 for local network)
        server_port : int
            Server port (1024-65535)
        log_level : Literal["DEBUG", "INFO", "WARNING", "ERROR"]
            Root log level configured by the ``illustratelab`` entry point

    Paths:
        static_dir : Path
            Directory holding CSS and JS assets served at ``/static``
        templates_dir : Path
            Directory holding ``index.html``

    Examples
    --------
        >>> cfg = IllustrateLabConfig(
        ...     cloudflare_account_id="abc",
        ...     cloudflare_api_token="token",
        ...     _env_file=None,
        ... )
        >>> cfg.cloudflare_enabled
        True
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="ILLUSTRATELAB_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Cloudflare Workers AI
    cloudflare_account_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "cloudflare_account_id",
            "ILLUSTRATELAB_CLOUDFLARE_ACCOUNT_ID",
            "CLOUDFLARE_ACCOUNT_ID",
        ),
        description="Cloudflare account identifier",
    )
    cloudflare_api_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "cloudflare_api_token",
            "ILLUSTRATELAB_CLOUDFLARE_API_TOKEN",
            "CLOUDFLARE_API_TOKEN",
        ),
        description="Cloudflare API token",
    )
    cloudflare_model: str = Field(
        default="@cf/stabilityai/stable-diffusion-xl-base-1.0",
        validation_alias=AliasChoices(
            "cloudflare_model",
            "ILLUSTRATELAB_CLOUDFLARE_MODEL",
            "CLOUDFLARE_MODEL",
        ),
        description="Workers AI model identifier",
    )

    # Hugging Face Inference
    hf_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("hf_token", "ILLUSTRATELAB_HF_TOKEN", "HF_TOKEN"),
        description="Hugging Face access token",
    )
    hf_model: str = Field(
        default="stabilityai/stable-diffusion-xl-base-1.0",
        validation_alias=AliasChoices("hf_model", "ILLUSTRATELAB_HF_MODEL", "HF_MODEL"),
        description="Hugging Face Inference model identifier",
    )

    provider_timeout: float = Field(
        default=120.0,
        gt=0,
        description="Timeout in seconds for each outbound provider request",
    )
    compose_provider_prompt: bool = Field(
        default=False,
        description="Fold style options into the prompt sent to remote providers",
    )

    # Server settings
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address (0.0.0.0 for local network)",
    )
    server_port: int = Field(
        default=7860,
        description="Server port",
        ge=1024,
        le=65535,
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Root log level for the server process",
    )

    # Paths
    static_dir: Path = Field(
        default=_PACKAGE_DIR / "static",
        description="Directory of static frontend assets",
    )
    templates_dir: Path = Field(
        default=_PACKAGE_DIR / "templates",
        description="Directory containing index.html",
    )

    @property
    def cloudflare_enabled(self) -> bool:
        """True when both Cloudflare credentials are present and non-empty."""
        return bool(self.cloudflare_account_id and self.cloudflare_api_token)

    @property
    def huggingface_enabled(self) -> bool:
        """True when a Hugging Face token is present and non-empty."""
        return bool(self.hf_token)


# Global configuration instance
# Loaded once at import time from the environment and .env file.  Components
# that need provider settings receive this object explicitly.
config = IllustrateLabConfig()
