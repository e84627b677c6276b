"""Turn evaluation requests into pass/fail verdicts through a judge model."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable

from langchain_core.prompts import PromptTemplate

from evaljudge.errors import ConfigurationError, JudgeInvocationError
from evaljudge.eval.parsing import (
    DEFAULT_AFFIRMATIVE_TOKENS,
    DEFAULT_NEGATIVE_TOKENS,
    classify_reply,
    normalize_tokens,
)
from evaljudge.eval.prompts import (
    BESPOKE_MINICHECK_PROMPT,
    FACT_CHECKING_PROMPT,
    RELEVANCY_PROMPT,
)
from evaljudge.models import EvaluationRequest, EvaluationResponse, Verdict

logger = logging.getLogger(__name__)


@runtime_checkable
class JudgeModel(Protocol):
    """Anything that turns a prompt into the judge's text reply."""

    def invoke(self, prompt: str) -> str: ...


class EvaluationMode(str, Enum):
    RELEVANCY = "relevancy"
    FACT_CHECKING = "factchecking"


@dataclass(frozen=True)
class ModeStrategy:
    mode: EvaluationMode
    required_placeholders: frozenset[str]
    default_template: str
    variables: Callable[[EvaluationRequest], dict[str, str]]


def _relevancy_variables(request: EvaluationRequest) -> dict[str, str]:
    return {
        "query": request.user_text,
        "response": request.response_text,
        "context": request.context_text("\n"),
    }


def _fact_checking_variables(request: EvaluationRequest) -> dict[str, str]:
    return {"document": request.user_text, "claim": request.response_text}


MODES: dict[EvaluationMode, ModeStrategy] = {
    EvaluationMode.RELEVANCY: ModeStrategy(
        mode=EvaluationMode.RELEVANCY,
        required_placeholders=frozenset({"query", "response", "context"}),
        default_template=RELEVANCY_PROMPT,
        variables=_relevancy_variables,
    ),
    EvaluationMode.FACT_CHECKING: ModeStrategy(
        mode=EvaluationMode.FACT_CHECKING,
        required_placeholders=frozenset({"document", "claim"}),
        default_template=FACT_CHECKING_PROMPT,
        variables=_fact_checking_variables,
    ),
}


def _build_prompt(template: str | PromptTemplate, strategy: ModeStrategy) -> PromptTemplate:
    if isinstance(template, PromptTemplate):
        prompt = template
    elif isinstance(template, str):
        try:
            prompt = PromptTemplate.from_template(template)
        except ValueError as exc:
            raise ConfigurationError(f"Malformed prompt template: {exc}") from exc
    else:
        raise ConfigurationError(
            f"Prompt template must be a string or PromptTemplate, got {type(template).__name__}",
        )

    placeholders = set(prompt.input_variables) | set(prompt.partial_variables)
    missing = strategy.required_placeholders - placeholders
    if missing:
        raise ConfigurationError(
            f"{strategy.mode.value} template is missing placeholders: "
            + ", ".join("{" + name + "}" for name in sorted(missing)),
        )
    unknown = set(prompt.input_variables) - strategy.required_placeholders
    if unknown:
        raise ConfigurationError(
            f"{strategy.mode.value} template uses placeholders it cannot fill: "
            + ", ".join("{" + name + "}" for name in sorted(unknown)),
        )
    return prompt


class EvaluationHarness:
    """
    Render a prompt for the request, ask the judge, classify the reply.

    Replies that match neither token set are negative verdicts flagged
    `low_confidence` in the response metadata. Judge failures are raised as
    JudgeInvocationError and never turned into verdicts.
    """

    def __init__(
        self,
        judge: JudgeModel,
        mode: EvaluationMode | str = EvaluationMode.RELEVANCY,
        template: str | PromptTemplate | None = None,
        affirmative_tokens: Iterable[str] = DEFAULT_AFFIRMATIVE_TOKENS,
        negative_tokens: Iterable[str] = DEFAULT_NEGATIVE_TOKENS,
        template_name: str | None = None,
    ):
        if judge is None or not callable(getattr(judge, "invoke", None)):
            raise ConfigurationError("judge must provide an invoke(prompt) method")
        try:
            self.mode = EvaluationMode(mode)
        except ValueError as exc:
            raise ConfigurationError(f"Unknown evaluation mode: {mode!r}") from exc

        self.judge = judge
        self.strategy = MODES[self.mode]
        self.template_name = template_name or ("default" if template is None else "custom")
        self.prompt = _build_prompt(
            self.strategy.default_template if template is None else template,
            self.strategy,
        )
        self.affirmative_tokens = normalize_tokens(affirmative_tokens, "affirmative")
        self.negative_tokens = normalize_tokens(negative_tokens, "negative")
        overlap = self.affirmative_tokens & self.negative_tokens
        if overlap:
            raise ConfigurationError(
                f"Tokens cannot be both affirmative and negative: {sorted(overlap)}",
            )

    def render(self, request: EvaluationRequest) -> str:
        return self.prompt.format(**self.strategy.variables(request))

    def evaluate(self, request: EvaluationRequest) -> EvaluationResponse:
        request = _as_request(request)
        prompt = self.render(request)
        try:
            reply = self.judge.invoke(prompt)
        except JudgeInvocationError:
            raise
        except Exception as exc:
            raise JudgeInvocationError(
                f"Judge model call failed: {exc}",
                prompt=prompt,
            ) from exc
        return self._to_response(reply, prompt)

    async def aevaluate(self, request: EvaluationRequest) -> EvaluationResponse:
        request = _as_request(request)
        prompt = self.render(request)
        ainvoke = getattr(self.judge, "ainvoke", None)
        try:
            if ainvoke is not None:
                reply = await ainvoke(prompt)
            else:
                reply = await asyncio.to_thread(self.judge.invoke, prompt)
        except JudgeInvocationError:
            raise
        except Exception as exc:
            raise JudgeInvocationError(
                f"Judge model call failed: {exc}",
                prompt=prompt,
            ) from exc
        return self._to_response(reply, prompt)

    def _to_response(self, reply: object, prompt: str) -> EvaluationResponse:
        if not isinstance(reply, str):
            raise JudgeInvocationError(
                f"Judge model returned {type(reply).__name__}, expected str",
                prompt=prompt,
            )

        verdict = classify_reply(reply, self.affirmative_tokens, self.negative_tokens)
        logger.debug("%s judge replied %r -> %s", self.mode.value, reply, verdict.value)
        if verdict is Verdict.AMBIGUOUS:
            logger.warning(
                "Ambiguous %s judge reply, treating as failed (%d chars)",
                self.mode.value,
                len(reply),
            )

        return EvaluationResponse(
            passed=verdict is Verdict.AFFIRMATIVE,
            raw_feedback=reply,
            metadata={
                "mode": self.mode.value,
                "template": self.template_name,
                "verdict": verdict.value,
                "low_confidence": verdict is Verdict.AMBIGUOUS,
            },
        )


def _as_request(request) -> EvaluationRequest:
    if isinstance(request, EvaluationRequest):
        return request
    return EvaluationRequest.model_validate(request)


def relevancy_evaluator(
    judge: JudgeModel,
    template: str | PromptTemplate | None = None,
) -> EvaluationHarness:
    return EvaluationHarness(judge, EvaluationMode.RELEVANCY, template)


def fact_checking_evaluator(
    judge: JudgeModel,
    template: str | PromptTemplate | None = None,
    affirmative_tokens: Iterable[str] = DEFAULT_AFFIRMATIVE_TOKENS,
    negative_tokens: Iterable[str] = DEFAULT_NEGATIVE_TOKENS,
) -> EvaluationHarness:
    return EvaluationHarness(
        judge,
        EvaluationMode.FACT_CHECKING,
        template,
        affirmative_tokens=affirmative_tokens,
        negative_tokens=negative_tokens,
    )


def bespoke_minicheck_evaluator(judge: JudgeModel) -> EvaluationHarness:
    """Fact checker for judge models trained to answer the bare document/claim pair."""
    return EvaluationHarness(
        judge,
        EvaluationMode.FACT_CHECKING,
        BESPOKE_MINICHECK_PROMPT,
        template_name="bespoke_minicheck",
    )
