"""Question answering over the collected corpus."""

import logging
from typing import Optional

from bankai.errors import ConfigurationError
from bankai.models.paper import ChatMessage, Paper
from bankai.services.llm_client import LLMClient
from bankai.services.retry import is_quota_error

logger = logging.getLogger(__name__)

MAX_CONTEXT_PAPERS = 50
MAX_HISTORY = 20
ABSTRACT_PREVIEW = 150

UNAVAILABLE_REPLY = "Service unavailable (Missing API Key)."
OVERLOADED_REPLY = "System is currently overloaded (Quota Limit). Please try again in a few minutes."
FAILURE_REPLY = "Error analyzing repository."
EMPTY_REPLY = "No response generated."

SYSTEM_INSTRUCTION = (
    "You are a Banking AI Research Assistant. Answer based on the Repository "
    "Context below. Cite [Paper N].\n\nRepository Context:\n{context}"
)


def build_context(papers: list[Paper], limit: int = MAX_CONTEXT_PAPERS) -> str:
    """Render the first *limit* papers as numbered context lines."""
    return "\n".join(
        f"[Paper {i}] {p.title} ({p.publication_date}) - {p.abstract[:ABSTRACT_PREVIEW]}..."
        for i, p in enumerate(papers[:limit], 1)
    )


class ChatService:
    """Forwards questions plus corpus context to the configured provider."""

    def __init__(self, client: Optional[LLMClient]):
        self.client = client

    async def query_corpus(self, history: list[ChatMessage], message: str, papers: list[Paper]) -> str:
        """Answer *message* using *papers* as context.

        Never raises: every failure becomes a fixed textual reply.
        """
        if self.client is None:
            return UNAVAILABLE_REPLY

        instruction = SYSTEM_INSTRUCTION.format(context=build_context(papers))
        try:
            reply = await self.client.chat(instruction, history[-MAX_HISTORY:], message)
        except ConfigurationError:
            return UNAVAILABLE_REPLY
        except Exception as e:
            if is_quota_error(e):
                return OVERLOADED_REPLY
            logger.warning("Chat provider call failed: %s", e)
            return FAILURE_REPLY
        return reply or EMPTY_REPLY
