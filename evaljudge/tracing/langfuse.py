from functools import lru_cache

from langfuse import Langfuse


@lru_cache(maxsize=1)
def get_langfuse() -> Langfuse:
    """Shared client, configured from the LANGFUSE_* environment variables."""
    return Langfuse()
