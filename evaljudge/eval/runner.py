"""Run response evaluation on a dataset and aggregate the verdicts."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from pydantic import ValidationError

from evaljudge.config import configure_logging, load_settings
from evaljudge.errors import ConfigurationError, JudgeInvocationError
from evaljudge.eval.harness import EvaluationHarness, EvaluationMode
from evaljudge.models import EvaluationRequest, Verdict

logger = logging.getLogger(__name__)

_ALIASES = {
    EvaluationMode.RELEVANCY: (
        ("user_text", "question", "query", "document"),
        ("response_text", "answer", "response", "claim"),
    ),
    EvaluationMode.FACT_CHECKING: (
        ("user_text", "document", "question", "query"),
        ("response_text", "claim", "answer", "response"),
    ),
}
_CONTEXT_KEYS = ("context_items", "context", "source_documents")


def _first(row: Mapping, keys: tuple[str, ...]):
    for key in keys:
        if row.get(key) is not None:
            return row[key]
    return None


def row_to_request(
    row: Mapping,
    mode: EvaluationMode = EvaluationMode.RELEVANCY,
) -> EvaluationRequest:
    """
    Build a request from a dataset row, accepting the common field aliases.

    The first alias present wins. Relevancy rows prefer `question`/`query`
    over `document`; fact-checking rows prefer `document` and `claim`.
    """
    user_keys, response_keys = _ALIASES[EvaluationMode(mode)]
    return EvaluationRequest(
        user_text=_first(row, user_keys),
        response_text=_first(row, response_keys),
        context_items=_first(row, _CONTEXT_KEYS) or (),
    )


def _evaluate_row(index: int, row: Mapping, harness: EvaluationHarness) -> dict:
    if not isinstance(row, Mapping):
        logger.warning("Skipping dataset row %s: not an object", index)
        return {
            "id": index,
            "error": "invalid_row",
            "detail": f"row must be an object, got {type(row).__name__}",
        }

    row_id = row.get("id", index)
    try:
        request = row_to_request(row, harness.mode)
    except ValidationError as e:
        logger.warning("Skipping invalid dataset row %s: %s", row_id, e)
        return {"id": row_id, "error": "invalid_row", "detail": str(e)}

    try:
        response = harness.evaluate(request)
    except JudgeInvocationError as e:
        logger.error("Judge failed on row %s: %s", row_id, e)
        return {"id": row_id, "error": "judge_invocation", "detail": str(e)}

    return {"id": row_id, **response.to_dict()}


def evaluate_dataset(
    rows: Iterable[Mapping],
    harness: EvaluationHarness,
    *,
    max_workers: int = 1,
) -> dict:
    """
    Evaluate every row and aggregate.

    A row whose judge call fails is reported as an error entry and does not
    count towards the pass rate.

    Returns:
        {
            "summary": {"count", "passed", "failed", "ambiguous", "errors", "pass_rate"},
            "results": [ one entry per row, in dataset order ],
            "count": N,
        }

    """
    rows = list(rows)
    if max_workers > 1 and len(rows) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            results = list(
                pool.map(
                    lambda item: _evaluate_row(item[0], item[1], harness),
                    enumerate(rows),
                ),
            )
    else:
        results = [_evaluate_row(i, row, harness) for i, row in enumerate(rows)]

    return {
        "summary": summarize(results),
        "results": results,
        "count": len(results),
    }


def summarize(results: list[dict]) -> dict:
    errors = sum(1 for r in results if "error" in r)
    passed = sum(1 for r in results if r.get("pass") is True)
    judged = len(results) - errors
    ambiguous = sum(
        1
        for r in results
        if r.get("metadata", {}).get("verdict") == Verdict.AMBIGUOUS.value
    )
    return {
        "count": len(results),
        "passed": passed,
        "failed": judged - passed,
        "ambiguous": ambiguous,
        "errors": errors,
        "pass_rate": round(passed / judged, 4) if judged else 0.0,
    }


def load_dataset(path: str | Path) -> list[dict]:
    """Read a JSON list of rows, or JSON Lines with one row per line."""
    text = Path(path).read_text(encoding="utf-8").strip()
    if not text:
        return []
    if text.startswith("["):
        return json.loads(text)
    return [json.loads(line) for line in text.splitlines() if line.strip()]


def main(argv: list[str] | None = None, judge=None) -> int:
    parser = argparse.ArgumentParser(description="Judge responses in a dataset with an LLM.")
    parser.add_argument("--dataset", required=True, help="JSON or JSON Lines file of rows")
    parser.add_argument(
        "--mode",
        choices=[m.value for m in EvaluationMode],
        default=EvaluationMode.RELEVANCY.value,
    )
    parser.add_argument("--model", default=None, help="Judge model name")
    parser.add_argument("--template", default=None, help="Path to a custom prompt template")
    parser.add_argument("--affirmative", nargs="+", default=["yes"])
    parser.add_argument("--negative", nargs="+", default=["no"])
    parser.add_argument("--workers", type=int, default=1)
    parser.add_argument("--output", default=None, help="Write JSON report to this path")
    args = parser.parse_args(argv)

    settings = load_settings()
    configure_logging(settings.log_level)

    try:
        if judge is None:
            from evaljudge.llms import build_judge

            judge = build_judge(args.model or settings.judge_model, settings=settings)
        template = (
            Path(args.template).read_text(encoding="utf-8") if args.template else None
        )
        harness = EvaluationHarness(
            judge,
            args.mode,
            template,
            affirmative_tokens=args.affirmative,
            negative_tokens=args.negative,
        )
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except OSError as e:
        print(f"Cannot read template {args.template}: {e}", file=sys.stderr)
        return 2

    try:
        rows = load_dataset(args.dataset)
    except (OSError, json.JSONDecodeError) as e:
        print(f"Cannot read dataset {args.dataset}: {e}", file=sys.stderr)
        return 2

    report = evaluate_dataset(rows, harness, max_workers=args.workers)
    summary = report["summary"]
    print(
        f"Passed {summary['passed']}/{summary['count']} rows | "
        f"{summary['ambiguous']} ambiguous | {summary['errors']} errors",
        file=sys.stderr,
    )
    for result in report["results"]:
        if "error" in result:
            status = "ERROR"
        else:
            status = "PASS" if result["pass"] else "FAIL"
        print(f"[{status}] {result['id']}", file=sys.stderr)

    if args.output:
        Path(args.output).write_text(
            json.dumps(report, ensure_ascii=False, indent=2),
            encoding="utf-8",
        )

    return 0 if summary["passed"] == summary["count"] else 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
