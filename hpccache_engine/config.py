"""
Configuration loading for the HPC Cache Engine.

Reads the engine settings from a YAML file and fills the subscription
from the environment when the file leaves it out.
"""

import logging
import os
from pathlib import Path
from typing import List, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError

from .exceptions import ConfigurationError
from .models import WaitSettings

logger = logging.getLogger(__name__)

SUBSCRIPTION_ENV_VAR = "AZURE_SUBSCRIPTION_ID"


class EngineConfig(BaseModel):
    """Engine configuration."""
    subscription_id: Optional[str] = Field(None, description="Azure subscription holding the caches")
    mock_mode: bool = Field(False, description="Use the in-memory mock control plane")
    wait: WaitSettings = Field(default_factory=WaitSettings)
    mock_caches: List[str] = Field(
        default_factory=list, description="Caches (resource_group/name) seeded into the mock control plane"
    )

    def connector_config(self) -> dict:
        """Configuration dictionary handed to connectors."""
        return {"subscription_id": self.subscription_id}


def load_config(path: Optional[Union[str, Path]] = None) -> EngineConfig:
    """
    Load the engine configuration.

    Args:
        path: YAML configuration file. A missing file yields the defaults.

    Returns:
        EngineConfig

    Raises:
        ConfigurationError: If the file cannot be parsed or is invalid
    """
    data = {}
    if path is not None:
        config_file = Path(path)
        if config_file.exists():
            try:
                with open(config_file, encoding='utf-8') as f:
                    data = yaml.safe_load(f) or {}
                logger.info(f"Loaded configuration from {config_file}")
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in {config_file}: {e}") from e
        else:
            logger.warning(f"Configuration file not found: {config_file}")

    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration must be a mapping, got {type(data).__name__}")

    try:
        config = EngineConfig(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    if not config.subscription_id:
        config.subscription_id = os.environ.get(SUBSCRIPTION_ENV_VAR)

    return config
