"""Adapt langchain chat models to the judge interface."""

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage

from evaljudge.errors import JudgeInvocationError


def message_text(message) -> str:
    """Text of a chat model reply, joining text blocks when content is a list."""
    content = message.content if hasattr(message, "content") else message
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    raise JudgeInvocationError(
        f"Judge model returned unsupported content type {type(content).__name__}",
    )


class LangChainJudge:
    """
    Single-turn judge backed by a langchain chat model.

    Each call sends one HumanMessage; no history is kept between calls.
    Retries and timeouts are whatever the wrapped model is configured with.
    """

    def __init__(self, llm: BaseChatModel, name: str | None = None):
        self.llm = llm
        self.name = name or getattr(llm, "model_name", None) or getattr(llm, "model", None)

    def invoke(self, prompt: str) -> str:
        try:
            reply = self.llm.invoke([HumanMessage(content=prompt)])
        except Exception as e:
            raise JudgeInvocationError(
                f"{self.name or 'judge'} call failed: {e}",
                prompt=prompt,
            ) from e
        return message_text(reply)

    async def ainvoke(self, prompt: str) -> str:
        try:
            reply = await self.llm.ainvoke([HumanMessage(content=prompt)])
        except Exception as e:
            raise JudgeInvocationError(
                f"{self.name or 'judge'} call failed: {e}",
                prompt=prompt,
            ) from e
        return message_text(reply)
