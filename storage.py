"""
Persistence layer for chat settings and the API key.
"""
import json
import logging
import os
from typing import Optional

from models import ChatSettings
import constants as C

logger = logging.getLogger(__name__)


def _get_config_dir() -> str:
    """Get config directory path."""
    config_dir = os.environ.get(C.ENV_CONFIG_DIR) or os.path.join(
        os.path.expanduser("~"), ".config", C.CONFIG_DIR_NAME
    )
    os.makedirs(config_dir, exist_ok=True)
    return config_dir


def _get_settings_path() -> str:
    """Get path to the settings data file."""
    return os.path.join(_get_config_dir(), C.SETTINGS_FILE_NAME)


def _settings_to_dict(settings: ChatSettings) -> dict:
    """Serialize ChatSettings to a JSON-serializable dict."""
    return {
        "api_key": settings.api_key,
        "model": settings.model,
        "temperature": settings.temperature,
        "max_output_tokens": settings.max_output_tokens,
        "stream_interval_ms": settings.stream_interval_ms,
        "words_per_chunk": settings.words_per_chunk,
    }


def _settings_from_dict(data: dict) -> ChatSettings:
    """Deserialize ChatSettings from a dict."""
    return ChatSettings(
        api_key=data.get("api_key") or None,
        model=data.get("model") or C.DEFAULT_MODEL,
        temperature=float(data.get("temperature", C.DEFAULT_TEMPERATURE)),
        max_output_tokens=int(data.get("max_output_tokens", C.DEFAULT_MAX_OUTPUT_TOKENS)),
        stream_interval_ms=int(data.get("stream_interval_ms", C.STREAM_INTERVAL_MS)),
        words_per_chunk=int(data.get("words_per_chunk", C.STREAM_WORDS_PER_CHUNK)),
    )


def load_settings(apply_env: bool = True) -> ChatSettings:
    """Load settings from disk, with environment overrides.

    GEMINI_API_KEY and GEMINI_MODEL take precedence over the file unless
    apply_env is False.

    Returns:
        ChatSettings object, or default settings if the file doesn't exist or is invalid.
    """
    path = _get_settings_path()
    settings = ChatSettings()
    if os.path.exists(path):
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            if isinstance(data, dict):
                settings = _settings_from_dict(data)
            else:
                logger.warning("Ignoring settings file %s: expected a JSON object", path)
        except (json.JSONDecodeError, TypeError, ValueError) as e:
            logger.warning("Could not load settings from %s: %s", path, e)

    if not apply_env:
        return settings
    env_key = os.environ.get(C.ENV_API_KEY, "").strip()
    if env_key:
        settings.api_key = env_key
    env_model = os.environ.get(C.ENV_MODEL, "").strip()
    if env_model:
        settings.model = env_model
    return settings


def save_settings(settings: ChatSettings) -> None:
    """Save settings to disk.

    Args:
        settings: ChatSettings object to save.
    """
    path = _get_settings_path()
    data = _settings_to_dict(settings)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    logger.info("Saved settings to %s", path)


def read_api_key() -> Optional[str]:
    """Read the currently configured API key."""
    return load_settings().api_key
