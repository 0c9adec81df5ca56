"""
Configuration for DashAI.
"""

from .loader import AssistantConfig, load_assistant_config, load_config

__all__ = ["AssistantConfig", "load_assistant_config", "load_config"]
