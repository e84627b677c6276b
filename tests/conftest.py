import pytest

from evaljudge.web import create_app


class StubJudge:
    """Deterministic judge: records every prompt, replies with a canned answer."""

    def __init__(self, reply="YES", error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    def invoke(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


class AsyncStubJudge(StubJudge):
    async def ainvoke(self, prompt):
        return self.invoke(prompt)


@pytest.fixture
def judge():
    return StubJudge()


@pytest.fixture
def app(judge):
    return create_app({"TESTING": True, "JUDGE_FACTORY": lambda: judge})


@pytest.fixture
def client(app):
    return app.test_client()
