"""Utilities for Hydra configuration management."""

import os
from typing import Optional, Union

import hydra
from hydra.core.hydra_config import HydraConfig
from hydra.utils import to_absolute_path
from omegaconf import DictConfig, OmegaConf

from .config_schema import MutateConfig, register_configs, validate_config


def get_config(config_path: Optional[str] = None,
               config_name: str = "default",
               overrides: Optional[list] = None) -> MutateConfig:
    """Get configuration using Hydra.

    Args:
        config_path: Path to config directory, relative to the caller's module
        config_name: Name of the config file to use (without .yaml)
        overrides: List of Hydra overrides (e.g. ["search.n_mutations=2"])

    Returns:
        Loaded and validated configuration object
    """
    register_configs()
    if config_path is None:
        # hydra.initialize resolves config_path relative to this module
        config_path = "."

    with hydra.initialize(version_base=None, config_path=config_path):
        cfg = hydra.compose(config_name=config_name, overrides=overrides or [])

    return validate_config(cfg)


def save_config(config: Union[MutateConfig, DictConfig],
                save_path: str,
                resolve: bool = True) -> None:
    """Save configuration to disk.

    Args:
        config: Configuration object to save
        save_path: Path to save the config to
        resolve: Whether to resolve interpolations before saving
    """
    if not OmegaConf.is_config(config):
        config = OmegaConf.structured(config)

    if resolve:
        config = OmegaConf.create(OmegaConf.to_container(config, resolve=True))

    directory = os.path.dirname(save_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    OmegaConf.save(config=config, f=save_path)


def resolve_path(path: Optional[str]) -> Optional[str]:
    """Resolve a path relative to the original working directory.

    Args:
        path: Path to resolve (None is passed through)

    Returns:
        Absolute path
    """
    if path is None or os.path.isabs(path):
        return path
    if HydraConfig.initialized():
        return to_absolute_path(path)
    return os.path.abspath(path)
