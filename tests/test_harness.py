import asyncio

import pytest
from langchain_core.prompts import PromptTemplate

from evaljudge import (
    ConfigurationError,
    EvaluationHarness,
    EvaluationMode,
    EvaluationRequest,
    JudgeInvocationError,
    bespoke_minicheck_evaluator,
    fact_checking_evaluator,
    relevancy_evaluator,
)
from tests.conftest import AsyncStubJudge, StubJudge

FOREST_REQUEST = EvaluationRequest(
    user_text="Where does the adventure take place?",
    context_items=["The story is set in a forest."],
    response_text="The adventure takes place in a forest.",
)

EARTH_DOCUMENT = (
    "The Earth is the third planet from the Sun and the only astronomical "
    "object known to harbor life."
)


def test_relevancy_scenario_passes_on_yes():
    judge = StubJudge("YES")
    response = relevancy_evaluator(judge).evaluate(FOREST_REQUEST)

    assert response.passed is True
    assert response.raw_feedback == "YES"
    assert len(judge.prompts) == 1
    prompt = judge.prompts[0]
    assert "Where does the adventure take place?" in prompt
    assert "The story is set in a forest." in prompt
    assert "The adventure takes place in a forest." in prompt


def test_fact_check_scenario_fails_on_no():
    judge = StubJudge("NO")
    request = EvaluationRequest(
        user_text=EARTH_DOCUMENT,
        response_text="The Earth is the fourth planet from the Sun.",
    )
    response = fact_checking_evaluator(judge).evaluate(request)

    assert response.passed is False
    assert response.metadata["verdict"] == "negative"
    assert response.metadata["low_confidence"] is False
    assert EARTH_DOCUMENT in judge.prompts[0]
    assert "fourth planet" in judge.prompts[0]


@pytest.mark.parametrize("reply", ["YES", "yes", "  Yes \n", "\tyEs", "Yes."])
def test_affirmative_replies_pass(reply):
    response = relevancy_evaluator(StubJudge(reply)).evaluate(FOREST_REQUEST)
    assert response.passed is True
    assert response.raw_feedback == reply


@pytest.mark.parametrize("reply", ["NO", "no", "  No\n", "No, because the context disagrees."])
def test_negative_replies_fail(reply):
    response = relevancy_evaluator(StubJudge(reply)).evaluate(FOREST_REQUEST)
    assert response.passed is False
    assert response.metadata["verdict"] == "negative"


@pytest.mark.parametrize("reply", ["Maybe", "", "I cannot tell.", "yesterday it was fine"])
def test_unrecognized_replies_fail_closed(reply):
    response = relevancy_evaluator(StubJudge(reply)).evaluate(FOREST_REQUEST)
    assert response.passed is False
    assert response.raw_feedback == reply
    assert response.metadata["verdict"] == "ambiguous"
    assert response.metadata["low_confidence"] is True


def test_metadata_keeps_insertion_order():
    response = relevancy_evaluator(StubJudge("YES")).evaluate(FOREST_REQUEST)
    assert list(response.metadata) == ["mode", "template", "verdict", "low_confidence"]
    assert response.metadata["mode"] == "relevancy"
    assert response.metadata["template"] == "default"


def test_render_is_deterministic():
    harness = relevancy_evaluator(StubJudge())
    first = harness.render(FOREST_REQUEST)
    again = harness.render(
        EvaluationRequest(
            user_text="Where does the adventure take place?",
            context_items=["The story is set in a forest."],
            response_text="The adventure takes place in a forest.",
        ),
    )
    assert first == again
    assert first.encode("utf-8") == again.encode("utf-8")


def test_context_items_joined_with_newline_in_order():
    harness = relevancy_evaluator(StubJudge(), template="Q={query} R={response} C={context}")
    request = EvaluationRequest(
        user_text="q",
        context_items=["first", "second", "third"],
        response_text="r",
    )
    assert harness.render(request) == "Q=q R=r C=first\nsecond\nthird"


def test_empty_context_renders_empty_string():
    harness = relevancy_evaluator(StubJudge(), template="[{context}] {query} {response}")
    request = EvaluationRequest(user_text="q", response_text="r")
    assert harness.render(request) == "[] q r"


def test_fact_check_ignores_context_items():
    harness = fact_checking_evaluator(StubJudge(), template="D={document} C={claim}")
    request = EvaluationRequest(
        user_text="doc",
        context_items=["unrelated context"],
        response_text="claim",
    )
    assert harness.render(request) == "D=doc C=claim"


def test_custom_template_marked_in_metadata():
    harness = relevancy_evaluator(StubJudge("yes"), template="{query}|{response}|{context}")
    response = harness.evaluate(FOREST_REQUEST)
    assert response.metadata["template"] == "custom"


def test_accepts_prompt_template_instance():
    template = PromptTemplate.from_template("Document: {document}\nClaim: {claim}\nAnswer:")
    judge = StubJudge("yes")
    harness = fact_checking_evaluator(judge, template=template)
    harness.evaluate(EvaluationRequest(user_text="d", response_text="c"))
    assert judge.prompts == ["Document: d\nClaim: c\nAnswer:"]


def test_bespoke_minicheck_uses_bare_template():
    judge = StubJudge("Yes")
    harness = bespoke_minicheck_evaluator(judge)
    response = harness.evaluate(EvaluationRequest(user_text="d", response_text="c"))

    assert judge.prompts == ["Document: d\nClaim: c"]
    assert response.passed is True
    assert response.metadata["mode"] == "factchecking"
    assert response.metadata["template"] == "bespoke_minicheck"


def test_configured_affirmative_labels():
    harness = fact_checking_evaluator(
        StubJudge("SUPPORTED"),
        affirmative_tokens={"supported"},
        negative_tokens={"unsupported"},
    )
    request = EvaluationRequest(user_text="d", response_text="c")
    assert harness.evaluate(request).passed is True

    harness.judge.reply = "UNSUPPORTED"
    response = harness.evaluate(request)
    assert response.passed is False
    assert response.metadata["verdict"] == "negative"

    harness.judge.reply = "yes"
    response = harness.evaluate(request)
    assert response.passed is False
    assert response.metadata["verdict"] == "ambiguous"


@pytest.mark.parametrize(
    "mode, template",
    [
        ("relevancy", "Query: {query}\nResponse: {response}"),
        ("relevancy", "no placeholders at all"),
        ("factchecking", "Document: {document}"),
        ("factchecking", "Claim: {claim}"),
    ],
)
def test_missing_placeholder_fails_at_construction(mode, template):
    judge = StubJudge()
    with pytest.raises(ConfigurationError, match="missing placeholders"):
        EvaluationHarness(judge, mode, template)
    assert judge.prompts == []


def test_unknown_placeholder_fails_at_construction():
    with pytest.raises(ConfigurationError, match="cannot fill"):
        EvaluationHarness(StubJudge(), "factchecking", "{document} {claim} {query}")


def test_malformed_template_fails_at_construction():
    with pytest.raises(ConfigurationError):
        EvaluationHarness(StubJudge(), "relevancy", "{query} {response} {context")


def test_unknown_mode_rejected():
    with pytest.raises(ConfigurationError, match="Unknown evaluation mode"):
        EvaluationHarness(StubJudge(), "summarization")


def test_mode_accepts_enum_and_string():
    assert EvaluationHarness(StubJudge(), "factchecking").mode is EvaluationMode.FACT_CHECKING
    assert EvaluationHarness(StubJudge(), EvaluationMode.RELEVANCY).mode is EvaluationMode.RELEVANCY


def test_judge_without_invoke_rejected():
    with pytest.raises(ConfigurationError):
        EvaluationHarness(None)
    with pytest.raises(ConfigurationError):
        EvaluationHarness(object())


def test_token_sets_must_be_disjoint_and_non_empty():
    with pytest.raises(ConfigurationError, match="both affirmative and negative"):
        EvaluationHarness(StubJudge(), affirmative_tokens={"yes"}, negative_tokens={"YES"})
    with pytest.raises(ConfigurationError, match="must not be empty"):
        EvaluationHarness(StubJudge(), affirmative_tokens=set())


def test_timeout_surfaces_as_judge_invocation_error():
    judge = StubJudge(error=TimeoutError("judge timed out"))
    harness = relevancy_evaluator(judge)

    with pytest.raises(JudgeInvocationError) as excinfo:
        harness.evaluate(FOREST_REQUEST)

    assert isinstance(excinfo.value.__cause__, TimeoutError)
    assert excinfo.value.prompt == judge.prompts[0]
    assert excinfo.value.status_code == 502


def test_judge_invocation_error_propagates_unchanged():
    original = JudgeInvocationError("provider returned 500")
    harness = relevancy_evaluator(StubJudge(error=original))
    with pytest.raises(JudgeInvocationError) as excinfo:
        harness.evaluate(FOREST_REQUEST)
    assert excinfo.value is original


def test_non_string_reply_is_invocation_error():
    harness = relevancy_evaluator(StubJudge(reply={"content": "yes"}))
    with pytest.raises(JudgeInvocationError, match="expected str"):
        harness.evaluate(FOREST_REQUEST)


def test_evaluate_accepts_mapping():
    response = relevancy_evaluator(StubJudge("yes")).evaluate(
        {
            "user_text": "q",
            "context_items": ["c"],
            "response_text": "r",
        },
    )
    assert response.passed is True


def test_aevaluate_runs_sync_judge_in_thread():
    judge = StubJudge("YES")
    response = asyncio.run(relevancy_evaluator(judge).aevaluate(FOREST_REQUEST))
    assert response.passed is True
    assert len(judge.prompts) == 1


def test_aevaluate_prefers_async_judge():
    judge = AsyncStubJudge("no")
    response = asyncio.run(fact_checking_evaluator(judge).aevaluate(
        EvaluationRequest(user_text="d", response_text="c"),
    ))
    assert response.passed is False
    assert response.metadata["verdict"] == "negative"


def test_aevaluate_wraps_timeout():
    judge = AsyncStubJudge(error=TimeoutError("slow"))
    with pytest.raises(JudgeInvocationError):
        asyncio.run(relevancy_evaluator(judge).aevaluate(FOREST_REQUEST))
