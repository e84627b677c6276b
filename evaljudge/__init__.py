from .errors import ConfigurationError, EvaluationError, JudgeInvocationError
from .eval import (
    EvaluationHarness,
    EvaluationMode,
    JudgeModel,
    bespoke_minicheck_evaluator,
    fact_checking_evaluator,
    relevancy_evaluator,
)
from .models import ContextItem, EvaluationRequest, EvaluationResponse, Verdict
