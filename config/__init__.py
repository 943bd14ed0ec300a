"""Settings modules per deployment environment, selected by ``APP_ENV``."""

from __future__ import annotations

import importlib
import os
from types import ModuleType
from typing import Optional

DEFAULT_ENVIRONMENT = "development"

_ENVIRONMENTS = {
    "development": "config.development",
    "dev": "config.development",
    "production": "config.production",
    "prod": "config.production",
    "testing": "config.testing",
    "test": "config.testing",
}


def get_settings_module(env: Optional[str] = None) -> str:
    """Dotted path of the settings module for ``env`` (defaults to ``APP_ENV``).

    Unknown names fall back to the development settings.
    """
    name = (env or os.getenv("APP_ENV") or DEFAULT_ENVIRONMENT).strip().lower()
    return _ENVIRONMENTS.get(name, _ENVIRONMENTS[DEFAULT_ENVIRONMENT])


def load_settings(env: Optional[str] = None) -> ModuleType:
    return importlib.import_module(get_settings_module(env))
