import logging
import os

from dotenv import load_dotenv
from openai import AzureOpenAI, OpenAI

from errors import ConfigurationError

# Automatically load values from a .env file when present so that local
# development "just works" without exporting variables manually.
load_dotenv()

GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


def configure_logging() -> None:
    """Configure root logging once, using LOG_LEVEL (defaults to INFO)."""
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# Model client helpers
# ---------------------------------------------------------------------------


def use_azure() -> bool:
    return bool(os.getenv("AZURE_OPENAI_API_KEY") and os.getenv("AZURE_OPENAI_ENDPOINT"))


def get_chat_model() -> str:
    """Return the model (or Azure deployment) name used for chat completions."""
    if use_azure():
        return os.getenv("AZURE_OPENAI_CHAT_DEPLOYMENT", "gpt-35-turbo")
    return os.getenv("GEMINI_MODEL", "gemini-2.0-flash")


def get_openai_client() -> OpenAI:
    """Instantiate the chat-completions client using environment variables.

    Gemini is reached through its OpenAI-compatible endpoint:
        - GEMINI_API_KEY
        - GEMINI_BASE_URL (optional, defaults to the public endpoint)

    Azure OpenAI takes precedence when both of these are set:
        - AZURE_OPENAI_API_KEY
        - AZURE_OPENAI_ENDPOINT (e.g. https://your-resource.openai.azure.com/)
        - AZURE_OPENAI_API_VERSION (optional, defaults to 2024-12-01-preview)

    LLM_TIMEOUT_SECONDS and LLM_MAX_RETRIES bound every call. The SDK only
    retries connection errors, timeouts, 429 and 5xx responses.
    """

    timeout = float(os.getenv("LLM_TIMEOUT_SECONDS", "60"))
    max_retries = int(os.getenv("LLM_MAX_RETRIES", "1"))

    if use_azure():
        return AzureOpenAI(
            azure_endpoint=os.getenv("AZURE_OPENAI_ENDPOINT"),
            api_key=os.getenv("AZURE_OPENAI_API_KEY"),
            api_version=os.getenv("AZURE_OPENAI_API_VERSION", "2024-12-01-preview"),
            timeout=timeout,
            max_retries=max_retries,
        )

    api_key = os.getenv("GEMINI_API_KEY")
    if not api_key:
        raise ConfigurationError(
            "Missing model configuration. Please set GEMINI_API_KEY "
            "(or AZURE_OPENAI_API_KEY and AZURE_OPENAI_ENDPOINT)."
        )

    return OpenAI(
        api_key=api_key,
        base_url=os.getenv("GEMINI_BASE_URL", GEMINI_OPENAI_BASE_URL),
        timeout=timeout,
        max_retries=max_retries,
    )


# ---------------------------------------------------------------------------
# Storage settings
# ---------------------------------------------------------------------------


def get_firestore_project() -> str | None:
    return os.getenv("FIRESTORE_PROJECT_ID") or None


def get_bucket_name() -> str | None:
    return os.getenv("GCS_BUCKET_NAME") or None


def get_local_storage_dir() -> str:
    return os.getenv("LOCAL_STORAGE_DIR", ".storage")
