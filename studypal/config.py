import os
from pathlib import Path
from dotenv import load_dotenv

ENV_FILE = Path(__file__).resolve().parent.parent / ".env"

# A .env next to the project wins over the shell; otherwise search from the cwd
load_dotenv(dotenv_path=ENV_FILE if ENV_FILE.exists() else None, override=True)

OPENAI_API_KEY = (os.getenv("OPENAI_API_KEY") or "").strip() or None
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-5-mini")
EMBEDDING_MODEL = os.getenv("EMBEDDING_MODEL", "text-embedding-3-small")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def require_api_key() -> str:
    """Return the OpenAI key, checked on first use rather than at import."""
    if not OPENAI_API_KEY:
        raise ValueError(
            f"OPENAI_API_KEY is missing. Add it to {ENV_FILE} (see .env.example) "
            "or export it before starting StudyPal."
        )
    if not OPENAI_API_KEY.startswith("sk-"):
        raise ValueError("OPENAI_API_KEY should start with 'sk-'. Check that the whole key was copied.")
    return OPENAI_API_KEY
