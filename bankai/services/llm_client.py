"""LLM provider clients (Google Gemini and Groq).

Both clients expose the same two coroutines:

* ``generate(prompt, web_search=False, json_output=False)`` – one-shot
  completion, optionally grounded with live web search (Gemini only)
  or constrained to a JSON array of paper candidates.
* ``chat(system_instruction, history, message)`` – one conversational
  turn on top of prior history.

Remote failures surface as :class:`ProviderError` carrying the HTTP
status so the retry layer can tell rate limits from everything else.
Clients are built once at process start and reused for every call.
"""

import logging
from typing import Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from bankai.config import DEFAULT_GEMINI_MODEL, DEFAULT_GROQ_MODEL, LLMSettings, Settings
from bankai.errors import ConfigurationError, ProviderError
from bankai.models.paper import ChatMessage

logger = logging.getLogger(__name__)

GROQ_CHAT_URL = "https://api.groq.com/openai/v1/chat/completions"
TIMEOUT = 60.0

# Shape of the knowledge-base fallback reply (JSON response mode)
PAPER_ARRAY_SCHEMA = types.Schema(
    type=types.Type.ARRAY,
    items=types.Schema(
        type=types.Type.OBJECT,
        properties={
            "title": types.Schema(type=types.Type.STRING),
            "abstract": types.Schema(type=types.Type.STRING),
            "authors": types.Schema(type=types.Type.ARRAY, items=types.Schema(type=types.Type.STRING)),
            "publicationDate": types.Schema(type=types.Type.STRING),
            "url": types.Schema(type=types.Type.STRING),
            "source": types.Schema(type=types.Type.STRING),
            "bankingDomain": types.Schema(type=types.Type.STRING),
            "aiDomain": types.Schema(type=types.Type.STRING),
            "methodology": types.Schema(type=types.Type.STRING),
        },
        required=["title", "abstract", "authors", "bankingDomain"],
    ),
)


class LLMClient:
    """Common interface of the provider clients."""

    name = "llm"

    async def generate(self, prompt: str, web_search: bool = False, json_output: bool = False) -> str:
        raise NotImplementedError

    async def chat(self, system_instruction: str, history: list[ChatMessage], message: str) -> str:
        raise NotImplementedError


class GeminiClient(LLMClient):
    """Google Gemini via the ``google-genai`` SDK (async surface)."""

    name = "gemini"

    def __init__(self, api_key: str, model: str = DEFAULT_GEMINI_MODEL):
        """Initialize the Gemini client.

        Args:
            api_key: Gemini API key
            model: Model id used for every call
        """
        if not api_key:
            raise ConfigurationError("API Key not configured.")
        self.model = model
        self._client = genai.Client(api_key=api_key)

    async def generate(self, prompt: str, web_search: bool = False, json_output: bool = False) -> str:
        options: dict = {}
        if web_search:
            options["tools"] = [types.Tool(google_search=types.GoogleSearch())]
        if json_output:
            options["response_mime_type"] = "application/json"
            options["response_schema"] = PAPER_ARRAY_SCHEMA
        try:
            response = await self._client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=types.GenerateContentConfig(**options),
            )
        except genai_errors.APIError as e:
            raise ProviderError(f"Gemini API Error ({e.code}): {e.message}", status_code=e.code) from e
        return response.text or ""

    async def chat(self, system_instruction: str, history: list[ChatMessage], message: str) -> str:
        session = self._client.aio.chats.create(
            model=self.model,
            config=types.GenerateContentConfig(system_instruction=system_instruction),
            history=[
                types.Content(role=m.role, parts=[types.Part(text=m.text)])
                for m in history
            ],
        )
        try:
            response = await session.send_message(message)
        except genai_errors.APIError as e:
            raise ProviderError(f"Gemini API Error ({e.code}): {e.message}", status_code=e.code) from e
        return response.text or ""


class GroqClient(LLMClient):
    """Groq's OpenAI-compatible chat completions endpoint over httpx."""

    name = "groq"

    def __init__(self, api_key: Optional[str], model: str = DEFAULT_GROQ_MODEL, url: str = GROQ_CHAT_URL):
        self.api_key = api_key
        self.model = model or DEFAULT_GROQ_MODEL
        self.url = url

    async def _complete(self, messages: list[dict[str, str]]) -> str:
        if not self.api_key:
            raise ConfigurationError("Groq API Key is missing in Settings.")
        headers = {"Authorization": f"Bearer {self.api_key}"}
        payload = {"messages": messages, "model": self.model}
        try:
            async with httpx.AsyncClient(timeout=TIMEOUT) as client:
                response = await client.post(self.url, headers=headers, json=payload)
        except httpx.TimeoutException as e:
            raise ProviderError("Groq request timed out") from e
        except httpx.HTTPError as e:
            raise ProviderError(f"Groq request failed: {e}") from e

        if response.status_code != 200:
            raise ProviderError(
                f"Groq API Error ({response.status_code}): {_groq_error_message(response)}",
                status_code=response.status_code,
            )
        data = response.json()
        choices = data.get("choices") or [{}]
        return (choices[0].get("message") or {}).get("content") or ""

    async def generate(self, prompt: str, web_search: bool = False, json_output: bool = False) -> str:
        if web_search:
            raise ConfigurationError("Groq does not support web search; collection requires Gemini.")
        return await self._complete([{"role": "user", "content": prompt}])

    async def chat(self, system_instruction: str, history: list[ChatMessage], message: str) -> str:
        messages = [{"role": "system", "content": system_instruction}]
        for m in history:
            messages.append({"role": "assistant" if m.role == "model" else "user", "content": m.text})
        messages.append({"role": "user", "content": message})
        return await self._complete(messages)


def _groq_error_message(response: httpx.Response) -> str:
    try:
        return response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return response.reason_phrase or "unknown error"


def build_gemini_client(settings: Settings) -> Optional[GeminiClient]:
    """Return a Gemini client, or None when no API key is configured."""
    if not settings.gemini_api_key:
        logger.info("GEMINI_API_KEY not set; web collection is disabled")
        return None
    return GeminiClient(settings.gemini_api_key, settings.gemini_model)


def build_chat_client(settings: Settings, llm_settings: LLMSettings) -> Optional[LLMClient]:
    """Return the client for chat and query optimization per *llm_settings*."""
    if llm_settings.provider == "groq":
        return GroqClient(llm_settings.groq_api_key, llm_settings.groq_model)
    return build_gemini_client(settings)
