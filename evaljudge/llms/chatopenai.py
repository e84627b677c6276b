from langchain_openai import ChatOpenAI


def build_llm(settings, model_name):
    return ChatOpenAI(
        model=model_name,
        temperature=settings.temperature,
        streaming=False,
    )
