from functools import partial

from evaljudge.config import Settings, load_settings
from evaljudge.errors import ConfigurationError

from .chatollama import build_llm as build_ollama
from .chatopenai import build_llm as build_openai
from .judge import LangChainJudge

llm_map = {
    "gpt-4o-mini": partial(build_openai, model_name="gpt-4o-mini"),
    "gpt-4o": partial(build_openai, model_name="gpt-4o"),
    "llama3.2": partial(build_ollama, model_name="llama3.2"),
    "bespoke-minicheck": partial(build_ollama, model_name="bespoke-minicheck"),
}


def build_judge(model_name: str, settings: Settings | None = None) -> LangChainJudge:
    if model_name not in llm_map:
        raise ConfigurationError(
            f"Unknown judge model {model_name!r}, expected one of {sorted(llm_map)}",
        )
    llm = llm_map[model_name](settings or load_settings())
    return LangChainJudge(llm, name=model_name)


__all__ = ["LangChainJudge", "build_judge", "llm_map"]
