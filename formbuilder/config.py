import os
import re
from functools import lru_cache
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Pattern to match $VAR_NAME environment variable references
ENV_VAR_PATTERN = re.compile(r"\$([A-Z_][A-Z0-9_]*)")


def interpolate_env_vars(value):
    """Recursively replace $VAR_NAME with os.environ values."""
    if isinstance(value, str):

        def replace(match):
            var = match.group(1)
            val = os.environ.get(var)
            if val is None:
                raise ValueError(f"Environment variable ${var} not set")
            return val

        return ENV_VAR_PATTERN.sub(replace, value)
    elif isinstance(value, dict):
        return {k: interpolate_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [interpolate_env_vars(item) for item in value]
    return value


def load_form_config(config_path: Path | None = None) -> dict:
    """Load the ``forms:`` section of app.yaml with environment variable interpolation."""
    config_path = config_path or Path.cwd() / "app.yaml"

    if not config_path.exists():
        raise FileNotFoundError(f"app.yaml not found at {config_path}")

    with open(config_path, "r") as f:
        config = yaml.safe_load(f)

    if not isinstance(config, dict):
        return {}

    return interpolate_env_vars(config.get("forms") or {})


class FormSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="FORMBUILDER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Hidden field names and session keys
    csrf_field_name: str = "_csrf"
    csrf_session_key: str = "_csrf_token"
    method_field_name: str = "_method"
    old_input_session_key: str = "_old_input"

    # Never repopulated from a previous submission
    dont_flash: list[str] = ["password", "password_confirmation", "current_password"]

    # Field defaults
    unchecked_value: str = "0"
    submit_label: str = "Submit"

    # Default select_year() window, relative to the current year
    year_window_before: int = 100
    year_window_after: int = 10


@lru_cache
def get_settings() -> FormSettings:
    """Load settings from the environment and app.yaml."""
    # Export .env into os.environ so app.yaml $VAR interpolation can see it
    load_dotenv(Path.cwd() / ".env")

    base_settings = FormSettings()

    try:
        form_config = load_form_config()
    except FileNotFoundError:
        return base_settings

    if form_config:
        # Init kwargs take priority over env vars, so YAML values win
        return FormSettings(**{**base_settings.model_dump(), **form_config})

    return base_settings


def clear_settings_cache() -> None:
    """Drop the cached settings so the next get_settings() reloads them."""
    get_settings.cache_clear()
