"""IllustrateLab - illustration concepts from remote providers or a local placeholder."""

__version__ = "0.1.0"

from illustratelab.core.config import IllustrateLabConfig, config

__all__ = [
    "IllustrateLabConfig",
    "config",
]
