from langchain_ollama import ChatOllama


def build_llm(settings, model_name):
    return ChatOllama(
        model=model_name,
        temperature=settings.temperature,
        disable_streaming=True,
    )
