"""Application settings, resolved once at startup.

Values come from the environment (a local .env is loaded first); server.py
overrides them with command-line flags.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .gateway import BASE_URL, MODEL, TIMEOUT_SECONDS
from .prompts import BASE_PROMPT

load_dotenv()

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    host: str = "localhost"
    port: int = 8080
    base_prompt: str = BASE_PROMPT
    log_file: str = "chatbot.log"
    session_timeout: float = 60.0
    sweep_interval: float = 30.0
    max_history: int = 20
    api_key: str | None = None
    model: str = MODEL
    api_base_url: str = BASE_URL
    gateway_timeout: float = TIMEOUT_SECONDS
    gateway_retries: int = 0
    webhook_url: str | None = None

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            host=os.getenv("RELAY_HOST", "localhost"),
            port=int(os.getenv("RELAY_PORT", "8080")),
            base_prompt=load_base_prompt(os.getenv("RELAY_PROMPT_FILE")),
            log_file=os.getenv("RELAY_LOG_FILE", "chatbot.log"),
            session_timeout=float(os.getenv("RELAY_SESSION_TIMEOUT", "60")),
            api_key=os.getenv("GEMINI_API_KEY") or None,
            model=os.getenv("GEMINI_MODEL", MODEL),
            api_base_url=os.getenv("GEMINI_BASE_URL", BASE_URL),
            gateway_retries=int(os.getenv("RELAY_GATEWAY_RETRIES", "0")),
            webhook_url=os.getenv("DISCORD_WEBHOOK_URL") or None,
        )


def load_base_prompt(prompt_file: str | None) -> str:
    """Read the base prompt from a file, falling back to the built-in one."""
    if not prompt_file:
        return BASE_PROMPT

    try:
        prompt = Path(prompt_file).read_text(encoding="utf-8")
    except OSError as e:
        logger.warning("Could not read prompt file '%s': %s", prompt_file, e)
        logger.warning("Using default base prompt")
        return BASE_PROMPT

    if not prompt:
        logger.warning("Prompt file '%s' is empty, using default", prompt_file)
        return BASE_PROMPT

    logger.info("Loaded base prompt from file: %s", prompt_file)
    return prompt
