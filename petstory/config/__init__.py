"""
Configuration module for the Pet Story backend.

Re-exports the settings object and its defaults.
"""

from .settings import (
    DEFAULT_FRONTEND_URL,
    DEFAULT_OPENAI_MODEL,
    DEFAULT_PIMS_BASE_URL,
    LOCAL_DEV_ORIGINS,
    Settings,
)

__all__ = [
    "Settings",
    "DEFAULT_FRONTEND_URL",
    "DEFAULT_OPENAI_MODEL",
    "DEFAULT_PIMS_BASE_URL",
    "LOCAL_DEV_ORIGINS",
]
