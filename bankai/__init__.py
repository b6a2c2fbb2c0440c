"""BankAI - research paper catalogue for banking AI.

A tool for collecting banking-AI papers with an LLM web-search pipeline,
classifying them into fixed taxonomies, and browsing, tagging and
chatting about the collected corpus.
"""

__version__ = "1.0.0"

from bankai.config import LLMSettings, Settings
from bankai.models.paper import AIDomain, BankingDomain, Methodology, Paper

__all__ = [
    "AIDomain",
    "BankingDomain",
    "LLMSettings",
    "Methodology",
    "Paper",
    "Settings",
    "__version__",
]
