from __future__ import annotations


class EvaluationError(RuntimeError):
    """Base error for evaluation failures that map to HTTP responses."""

    status_code: int = 500

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.__class__.__name__
        super().__init__(self.message)


class ConfigurationError(EvaluationError):
    status_code = 500


class JudgeInvocationError(EvaluationError):
    """The judge model did not produce a reply."""

    status_code = 502

    def __init__(self, message: str | None = None, prompt: str | None = None) -> None:
        super().__init__(message)
        self.prompt = prompt
