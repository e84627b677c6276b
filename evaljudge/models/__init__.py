from enum import Enum
from typing import Any

from langchain_core.documents import Document
from pydantic import BaseModel, ConfigDict, Field, field_validator


class Verdict(str, Enum):
    AFFIRMATIVE = "affirmative"
    NEGATIVE = "negative"
    AMBIGUOUS = "ambiguous"


class ContextItem(BaseModel):
    """A fragment of retrieved supporting material."""

    model_config = ConfigDict(frozen=True)

    text: str
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def coerce(cls, value: Any) -> Any:
        if isinstance(value, str):
            return cls(text=value)
        if isinstance(value, Document):
            return cls(text=value.page_content, metadata=dict(value.metadata))
        if isinstance(value, dict) and "page_content" in value and "text" not in value:
            return cls(
                text=value["page_content"],
                metadata=value.get("metadata") or {},
            )
        return value


class EvaluationRequest(BaseModel):
    """
    One (query, context, response) triple to judge.

    In fact-checking mode `user_text` carries the supporting document and
    `response_text` the claim; `context_items` is ignored there.
    """

    model_config = ConfigDict(frozen=True)

    user_text: str
    context_items: tuple[ContextItem, ...] = ()
    response_text: str

    @field_validator("context_items", mode="before")
    @classmethod
    def _coerce_context_items(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, (str, Document)):
            value = [value]
        return tuple(ContextItem.coerce(item) for item in value)

    def context_text(self, separator: str = "\n") -> str:
        return separator.join(item.text for item in self.context_items)


class EvaluationResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    passed: bool
    raw_feedback: str
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def verdict(self) -> Verdict | None:
        value = self.metadata.get("verdict")
        return Verdict(value) if value is not None else None

    def to_dict(self) -> dict:
        return {
            "pass": self.passed,
            "raw_feedback": self.raw_feedback,
            "metadata": dict(self.metadata),
        }
