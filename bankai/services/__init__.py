"""Service layer."""

from bankai.services.batch_service import DailyBatchScheduler
from bankai.services.chat_service import ChatService
from bankai.services.collection_service import CollectionPipeline, CollectionReport, CollectionRunner
from bankai.services.llm_client import GeminiClient, GroqClient, LLMClient
from bankai.services.retry import retry_operation
from bankai.services.sanitizer import sanitize_papers

__all__ = [
    "ChatService",
    "CollectionPipeline",
    "CollectionReport",
    "CollectionRunner",
    "DailyBatchScheduler",
    "GeminiClient",
    "GroqClient",
    "LLMClient",
    "retry_operation",
    "sanitize_papers",
]
