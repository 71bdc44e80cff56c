"""Plugin system for hello-operator."""

from .base import OperatorContext, PluginBase
from .registry import PluginRegistry

__all__ = ["OperatorContext", "PluginBase", "PluginRegistry"]
