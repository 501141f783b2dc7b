"""Core settings for IllustrateLab.

- **IllustrateLabConfig**: Configuration management using Pydantic Settings
- **config**: Global configuration instance (loads from environment variables)
"""

from illustratelab.core.config import IllustrateLabConfig, config

__all__ = [
    "IllustrateLabConfig",
    "config",
]
