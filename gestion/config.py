import os
from dataclasses import dataclass
from typing import Optional

import streamlit as st

# Mapping of configuration keys to their corresponding environment variables
_API_ENV_VARS = {
    "base_url": "API_BASE_URL",
    "application_name": "APPLICATION_NAME",
    "timeout": "API_TIMEOUT",
}

DEFAULT_TIMEOUT = 15.0
DEFAULT_APPLICATION_NAME = "gestion"
STORAGE_FILE = os.getenv("GESTION_STORAGE_FILE", ".gestion_storage.json")


@dataclass(frozen=True)
class ApiConfig:
    base_url: str
    application_name: str = DEFAULT_APPLICATION_NAME
    timeout: float = DEFAULT_TIMEOUT


def _build(values) -> Optional[ApiConfig]:
    base_url = (values.get("base_url") or "").strip()
    if not base_url:
        return None
    try:
        timeout = float(values.get("timeout") or DEFAULT_TIMEOUT)
    except (TypeError, ValueError):
        timeout = DEFAULT_TIMEOUT
    return ApiConfig(
        base_url=base_url.rstrip("/"),
        application_name=values.get("application_name") or DEFAULT_APPLICATION_NAME,
        timeout=timeout,
    )


def load_api_config() -> Optional[ApiConfig]:
    """Return API configuration from environment or Streamlit secrets."""
    # Pull values from environment variables first
    env_config = _build({k: os.getenv(env) for k, env in _API_ENV_VARS.items()})
    if env_config is not None:
        return env_config

    # Fallback to Streamlit secrets
    try:
        has_api_secrets = "api" in st.secrets
    except FileNotFoundError:
        return None
    if has_api_secrets:
        return _build({k: st.secrets["api"].get(k) for k in _API_ENV_VARS})

    return None
