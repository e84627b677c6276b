"""API for judging a single response for relevancy or factual support."""

import logging

from flask import Blueprint, current_app, jsonify, request
from werkzeug.exceptions import BadRequest

from evaljudge.errors import EvaluationError
from evaljudge.eval.harness import MODES, EvaluationHarness, EvaluationMode
from evaljudge.models import EvaluationRequest
from evaljudge.tracing.langfuse import get_langfuse

bp = Blueprint("eval", __name__, url_prefix="/api/eval")
logger = logging.getLogger(__name__)


def _get_judge():
    """Judge from the app's JUDGE_FACTORY, or the configured langchain model."""
    factory = current_app.config.get("JUDGE_FACTORY")
    if factory is not None:
        return factory()
    from evaljudge.llms import build_judge

    settings = current_app.config["SETTINGS"]
    return build_judge(settings.judge_model, settings=settings)


def _require_text(data: dict, key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise BadRequest(f"{key} must be a string")
    return value


def _run(name: str, harness: EvaluationHarness, eval_request: EvaluationRequest):
    if not current_app.config.get("TRACING"):
        return harness.evaluate(eval_request)

    langfuse = get_langfuse()
    trace_input = eval_request.model_dump(mode="json")
    trace = langfuse.trace(
        name=name,
        metadata={"mode": harness.mode.value, "template": harness.template_name},
        input=trace_input,
    )
    generation = langfuse.generation(
        name=name,
        trace_id=trace.id,
        input=harness.render(eval_request),
    )
    try:
        response = harness.evaluate(eval_request)
        output_data = response.to_dict()
        generation.end(output=output_data)
        trace.update(output=output_data)
        return response
    except Exception as e:
        output_data = {"error": str(e)}
        generation.end(output=output_data, level="ERROR")
        trace.update(output=output_data)
        raise
    finally:
        langfuse.flush()


@bp.route("/relevancy", methods=["POST"])
def evaluate_relevancy():
    """
    Judge whether a response is in line with the query and its context.

    Body:
        query: str
        response: str
        context: list[str] (optional)

    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        raise BadRequest("body must be a JSON object")
    context = data.get("context") or []
    if not isinstance(context, list) or not all(isinstance(c, str) for c in context):
        raise BadRequest("context must be a list of strings")

    eval_request = EvaluationRequest(
        user_text=_require_text(data, "query"),
        context_items=context,
        response_text=_require_text(data, "response"),
    )
    harness = EvaluationHarness(_get_judge(), EvaluationMode.RELEVANCY)
    response = _run("relevancy_eval", harness, eval_request)
    return jsonify(response.to_dict())


@bp.route("/fact-check", methods=["POST"])
def evaluate_fact_check():
    """
    Judge whether a claim is supported by a document.

    Body:
        document: str
        claim: str

    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        raise BadRequest("body must be a JSON object")
    eval_request = EvaluationRequest(
        user_text=_require_text(data, "document"),
        response_text=_require_text(data, "claim"),
    )
    harness = EvaluationHarness(_get_judge(), EvaluationMode.FACT_CHECKING)
    response = _run("fact_check_eval", harness, eval_request)
    return jsonify(response.to_dict())


@bp.route("/modes", methods=["GET"])
def list_modes():
    """Describe the evaluation modes and the placeholders their templates need."""
    return jsonify(
        {
            "modes": {
                mode.value: {
                    "required_placeholders": sorted(strategy.required_placeholders),
                }
                for mode, strategy in MODES.items()
            },
            "usage": (
                'POST /api/eval/relevancy with { "query": ..., "response": ..., "context": [...] } '
                'or POST /api/eval/fact-check with { "document": ..., "claim": ... }.'
            ),
        },
    )


@bp.errorhandler(BadRequest)
def handle_bad_request(e):
    return jsonify({"error": e.description}), 400


@bp.errorhandler(EvaluationError)
def handle_evaluation_error(e):
    logger.error("Evaluation failed: %s", e.message)
    return jsonify({"error": e.message, "type": e.__class__.__name__}), e.status_code
