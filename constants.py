"""
Endpoint, model and pacing constants for Gemini Chat.
"""

# API
API_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
API_GENERATE_CONTENT = "/models/{model}:generateContent"
API_TIMEOUT = 120  # seconds

# Role labels on the wire
WIRE_ROLE_USER = "user"
WIRE_ROLE_MODEL = "model"

# Models offered by the model selector
AVAILABLE_MODELS = [
    "gemini-2.0-flash",
    "gemini-2.5-flash",
    "gemini-2.5-pro",
]
DEFAULT_MODEL = "gemini-2.5-pro"

# Default generation settings
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_OUTPUT_TOKENS = 2048

# Simulated streaming (50ms with 2 words = ~40 words per second)
STREAM_INTERVAL_MS = 50
STREAM_WORDS_PER_CHUNK = 2

# Settings storage
CONFIG_DIR_NAME = "GeminiChat"
SETTINGS_FILE_NAME = "settings.json"
ENV_CONFIG_DIR = "GEMINI_CHAT_CONFIG_DIR"
ENV_API_KEY = "GEMINI_API_KEY"
ENV_MODEL = "GEMINI_MODEL"

# Token estimate fallback
CHARS_PER_TOKEN_EST = 4

# User-facing messages
MSG_MISSING_API_KEY = "Please configure your Gemini API key in settings"
MSG_ERROR_PREFIX = "Error: "
