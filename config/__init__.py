"""Configuration management for the voting engine."""

from .config import ElectionConfig, SystemConfig, load_config, save_config

__all__ = ['ElectionConfig', 'SystemConfig', 'load_config', 'save_config']
