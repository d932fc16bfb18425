"""
LLM Service - text and title generation
Supports 100+ model providers via LiteLLM

The branching engine treats both capabilities as black boxes:
    generate(prompt, history) -> reply text
    title_for(first_message) -> short chat title
Any provider failure surfaces as UpstreamGenerationError.
"""

import logging
from typing import Dict, List, Optional

import litellm
from langchain_litellm import ChatLiteLLM
from langchain_core.messages import SystemMessage, HumanMessage, AIMessage

from branchchat.config import settings
from branchchat.core.exceptions import UpstreamGenerationError

# Configure litellm to automatically drop unsupported parameters
litellm.drop_params = True

logger = logging.getLogger(__name__)

TITLE_PROMPT = """Generate a short, descriptive title for a chat that starts with the message below.

Rules:
- 10 to 50 characters
- No quotes, no trailing punctuation, no "Title:" prefix
- Output ONLY the title

MESSAGE:
{message}"""

TITLE_MAX_LENGTH = 50


class LLMService:
    """
    Text generation client using LiteLLM via LangChain

    Key features:
    - Provider-agnostic model strings (provider/model)
    - Separate, cheaper configuration for title generation
    - Conversation history passed as role/content pairs
    """

    def __init__(
        self,
        llm: Optional[ChatLiteLLM] = None,
        title_llm: Optional[ChatLiteLLM] = None,
        system_prompt: Optional[str] = None,
    ):
        """
        Initialize LLM service

        Args:
            llm: Chat model for replies (built from settings when omitted)
            title_llm: Chat model for titles (built from settings when omitted)
            system_prompt: System instruction for replies
        """
        self.llm = llm or self._initialize_llm(max_tokens=settings.CHAT_MAX_TOKENS)
        self.title_llm = title_llm or self._initialize_llm(
            model=settings.TITLE_MODEL or None,
            temperature=0.3,
            max_tokens=settings.TITLE_MAX_TOKENS,
        )
        self.system_prompt = system_prompt or settings.SYSTEM_PROMPT

    @staticmethod
    def _model_string(model: Optional[str] = None) -> str:
        """
        Resolve the LiteLLM model string

        Priority:
        1. Explicit model (prefixed with the default provider if it has none)
        2. LLM_MODEL_STRING
        3. LLM_PROVIDER/CHAT_MODEL
        """
        if model:
            return model if "/" in model else f"{settings.LLM_PROVIDER}/{model}"
        if settings.LLM_MODEL_STRING:
            return settings.LLM_MODEL_STRING
        return f"{settings.LLM_PROVIDER}/{settings.CHAT_MODEL}"

    def _initialize_llm(
        self,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> ChatLiteLLM:
        """Initialize LiteLLM client with configured provider"""
        model_string = self._model_string(model)

        litellm_kwargs = {
            "model": model_string,
            "temperature": temperature if temperature is not None else settings.CHAT_TEMPERATURE,
            "max_tokens": max_tokens or settings.CHAT_MAX_TOKENS,
            "timeout": settings.LLM_TIMEOUT,
        }

        if settings.LLM_API_KEY:
            litellm_kwargs["api_key"] = settings.LLM_API_KEY

        if settings.LLM_API_BASE:
            litellm_kwargs["api_base"] = settings.LLM_API_BASE

        logger.info(f"Initializing LiteLLM with model: {model_string}")
        return ChatLiteLLM(**litellm_kwargs)

    def _build_messages(self, prompt: str, history: List[Dict[str, str]]) -> List:
        """
        Build messages for LangChain LLM

        Args:
            prompt: Current user message
            history: Prior transcript as [{role, content}]

        Returns:
            List of LangChain message objects
        """
        messages = [SystemMessage(content=self.system_prompt)]

        for msg in history:
            if not msg.get("content"):
                continue
            if msg["role"] == "user":
                messages.append(HumanMessage(content=msg["content"]))
            elif msg["role"] == "assistant":
                messages.append(AIMessage(content=msg["content"]))

        messages.append(HumanMessage(content=prompt))
        return messages

    @staticmethod
    def _response_text(response) -> str:
        content = getattr(response, "content", None)
        if isinstance(content, list):
            content = "".join(
                part.get("text", "") if isinstance(part, dict) else str(part)
                for part in content
            )
        return (content or "").strip()

    async def generate(self, prompt: str, history: List[Dict[str, str]]) -> str:
        """
        Generate an assistant reply

        Args:
            prompt: User message to answer
            history: Ordered transcript preceding the prompt

        Returns:
            Reply text

        Raises:
            UpstreamGenerationError: provider failed or returned nothing
        """
        messages = self._build_messages(prompt, history)
        logger.debug(f"Generating reply with {len(history)} history messages")

        try:
            response = await self.llm.ainvoke(messages)
        except Exception as e:
            logger.error(f"Chat generation failed: {e}")
            raise UpstreamGenerationError(f"Failed to get response from AI: {e}") from e

        text = self._response_text(response)
        if not text:
            raise UpstreamGenerationError("No response from AI")
        return text

    async def title_for(self, first_message: str) -> str:
        """
        Generate a short chat title from the first message

        Callers apply their own fallback; this method never truncates
        the user's message itself.

        Raises:
            UpstreamGenerationError: provider failed or returned nothing usable
        """
        prompt = TITLE_PROMPT.format(message=first_message[:2000])

        try:
            response = await self.title_llm.ainvoke([HumanMessage(content=prompt)])
        except Exception as e:
            logger.warning(f"Title generation failed: {e}")
            raise UpstreamGenerationError(f"Failed to generate title: {e}") from e

        title = clean_title(self._response_text(response))
        if not title:
            raise UpstreamGenerationError("Empty title from AI")
        return title


def clean_title(raw: str) -> str:
    """First line of a model answer, without quotes, prefix or trailing dot"""
    lines = [line.strip() for line in (raw or "").splitlines() if line.strip()]
    if not lines:
        return ""

    title = lines[0]
    if title.lower().startswith("title:"):
        title = title[len("title:"):].strip()
    title = title.strip("\"'`*#").strip().rstrip(".")

    return title[:TITLE_MAX_LENGTH].strip()
