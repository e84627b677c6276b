import logging
import os
import sys

from pydantic import BaseModel

_TRUTHY = {"1", "true", "yes", "on"}


class Settings(BaseModel):
    judge_model: str = "llama3.2"
    temperature: float = 0.0
    log_level: str = "INFO"
    tracing: bool = False


def load_settings() -> Settings:
    """Read settings from EVALJUDGE_* environment variables."""
    return Settings(
        judge_model=os.getenv("EVALJUDGE_JUDGE_MODEL", "llama3.2"),
        temperature=float(os.getenv("EVALJUDGE_TEMPERATURE", "0.0")),
        log_level=os.getenv("EVALJUDGE_LOG_LEVEL", "INFO").upper(),
        tracing=os.getenv("EVALJUDGE_TRACING", "").strip().lower() in _TRUTHY,
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
