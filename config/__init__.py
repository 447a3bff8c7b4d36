"""Configuration package for the interview session service."""
from .registry import QUESTION_KEY, SCORER_KEY, SUMMARY_KEY, bind_model, clear_models, get_model, unbind_model
from .routes import AppConfig, LlmRoute, load_app_registry, load_config, resolve_registry
from .settings import Settings, settings

__all__ = [
    "AppConfig",
    "LlmRoute",
    "load_app_registry",
    "load_config",
    "resolve_registry",
    "QUESTION_KEY",
    "SCORER_KEY",
    "SUMMARY_KEY",
    "bind_model",
    "clear_models",
    "get_model",
    "unbind_model",
    "Settings",
    "settings",
]
