"""
LLM client with Groq integration and chat prompt construction
"""
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from groq import AsyncGroq

from pdfnotebook.core.errors import ConfigurationError, UpstreamGenerationError
from pdfnotebook.core.retriever import RetrievedDocument
from pdfnotebook.logger import logger
from pdfnotebook.metrics import LLM_CALLS

NO_CONTEXT_ANSWER = (
    "I couldn't find any readable content in the documents of this notebook, "
    "so I can't answer from your documents yet. Try uploading the documents again "
    "or wait until their processing has finished."
)

CHAT_INSTRUCTIONS = """Educational Instructions:
- Answer based primarily on the provided document content
- Explain concepts in a clear, student-friendly manner
- Break down complex topics into understandable parts
- Provide examples and analogies when helpful
- Highlight key terms and their definitions
- If explaining processes, break them into step-by-step format
- Use bullet points or numbered lists for clarity when appropriate
- If the question cannot be answered from the documents, state that clearly
- Suggest related questions or topics to explore"""


class Generator(ABC):
    """Opaque text-in/text-out model"""

    @abstractmethod
    async def complete(self, prompt: str, system: Optional[str] = None) -> str:
        """Return the model's raw text; raises UpstreamGenerationError on failure"""


class GroqGenerator(Generator):
    """Generator backed by the Groq chat completions API"""

    def __init__(
        self,
        api_key: str,
        model: str = "llama-3.3-70b-versatile",
        max_tokens: int = 2048,
        temperature: float = 0.2,
        client: Optional[AsyncGroq] = None,
    ):
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._client = client or (AsyncGroq(api_key=api_key) if api_key else None)
        if self._client is None:
            logger.warning("GROQ_API_KEY not configured; generation requests will fail")

    async def complete(self, prompt: str, system: Optional[str] = None) -> str:
        if self._client is None:
            raise ConfigurationError("Groq API key not configured. Set GROQ_API_KEY in .env")

        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        try:
            logger.debug(f"Calling Groq API with model: {self.model}")
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
            content = response.choices[0].message.content
        except Exception as e:
            LLM_CALLS.labels(status="failure").inc()
            logger.error(f"Groq API call failed: {str(e)}")
            raise UpstreamGenerationError(f"Generation request failed: {e}") from e

        if not content or not content.strip():
            LLM_CALLS.labels(status="failure").inc()
            raise UpstreamGenerationError("Generation returned an empty response")

        LLM_CALLS.labels(status="success").inc()
        logger.info(f"Groq API call succeeded - generated {len(content)} chars")
        return content


def format_context(documents: Sequence[RetrievedDocument]) -> str:
    return "\n".join(
        f"Document: {doc.filename}\nContent: {doc.text}\n---\n"
        for doc in documents
    )


def build_chat_prompt(question: str, documents: Sequence[RetrievedDocument]) -> str:
    return (
        "You are an intelligent educational assistant designed to help students learn "
        "from their documents. Use the following document content to provide clear, "
        "educational explanations.\n\n"
        f"Document Context:\n{format_context(documents)}\n"
        f"User Question: {question}\n\n"
        f"{CHAT_INSTRUCTIONS}\n\n"
        "Answer:"
    )


async def generate(
    generator: Generator,
    question: str,
    documents: Sequence[RetrievedDocument],
) -> str:
    """
    Answer a question from the retrieved documents

    With no documents the model is not called and a fixed
    "cannot answer from documents" message is returned.
    """
    context_chars = sum(len(doc.text) for doc in documents)
    if not documents or context_chars == 0:
        logger.info("No document context available; returning no-context answer")
        return NO_CONTEXT_ANSWER

    logger.info(f"Answering question with {len(documents)} documents ({context_chars} chars of context)")
    return await generator.complete(build_chat_prompt(question, documents))
