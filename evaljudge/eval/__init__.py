"""Response evaluation: LLM-judged relevancy and fact checking."""

from evaljudge.eval.harness import (
    MODES,
    EvaluationHarness,
    EvaluationMode,
    JudgeModel,
    bespoke_minicheck_evaluator,
    fact_checking_evaluator,
    relevancy_evaluator,
)
from evaljudge.eval.parsing import classify_reply
from evaljudge.eval.runner import evaluate_dataset, load_dataset

__all__ = [
    "MODES",
    "EvaluationHarness",
    "EvaluationMode",
    "JudgeModel",
    "bespoke_minicheck_evaluator",
    "classify_reply",
    "evaluate_dataset",
    "fact_checking_evaluator",
    "load_dataset",
    "relevancy_evaluator",
]
