"""LLM-as-judge prompts for response evaluation."""

RELEVANCY_PROMPT = """Your task is to evaluate if the response for the query is in line with the context information provided.

You have two options to answer. Either YES or NO.

Answer YES if the response for the query is in line with the context information, otherwise answer NO.

Query:
{query}

Response:
{response}

Context:
{context}

Answer:"""

FACT_CHECKING_PROMPT = """Evaluate whether or not the following claim is supported by the provided document.
Respond with "yes" if the claim is supported, or "no" if it is not.

Document:
{document}

Claim:
{claim}"""

# Bespoke-MiniCheck and similar fact-check models are fine-tuned to answer
# yes/no from the bare pair, so no instructions are included.
BESPOKE_MINICHECK_PROMPT = """Document: {document}
Claim: {claim}"""
