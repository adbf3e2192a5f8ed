"""Completion client wrapping the external chat model."""
from typing import List, Dict, Optional
import logging

from langchain.chat_models import init_chat_model
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage, AIMessage, SystemMessage

from config import Settings
from errors import UpstreamError
from graph import build_reply_graph
from services.context import ContextWindow

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "New Chat"
MAX_TITLE_LENGTH = 255

TITLE_INSTRUCTION = (
    "Generate a short, concise title (max 6 words) for this chat thread "
    "based on the first message. Respond with just the title."
)

_ROLE_TO_MESSAGE = {
    "user": HumanMessage,
    "assistant": AIMessage,
    "system": SystemMessage,
}


def to_langchain_messages(history: List[Dict[str, str]]) -> List[BaseMessage]:
    """Convert role-tagged dicts to LangChain messages, keeping their order."""
    messages = []
    for entry in history:
        message_cls = _ROLE_TO_MESSAGE.get(entry["role"])
        if message_cls is None:
            raise ValueError(f"Unknown message role: {entry['role']}")
        messages.append(message_cls(content=entry["content"]))
    return messages


def _text_of(message: BaseMessage) -> str:
    content = message.content
    if isinstance(content, str):
        return content
    # Some providers return content blocks instead of a plain string
    return "".join(
        block.get("text", "") if isinstance(block, dict) else str(block)
        for block in content or []
    )


class CompletionClient:
    """Turns an ordered, role-tagged conversation into one assistant reply."""

    def __init__(
        self,
        model: BaseChatModel,
        title_model: Optional[BaseChatModel] = None,
        window: Optional[ContextWindow] = None,
    ):
        self.model = model
        self.title_model = title_model or model
        self.window = window or ContextWindow()
        self.graph = build_reply_graph(self.model, self.window)

    async def generate_reply(self, history: List[Dict[str, str]]) -> Dict[str, str]:
        """
        Ask the completion service for the next assistant message.

        Args:
            history: Conversation so far, oldest first, newest user message last.

        Returns:
            {"role": "assistant", "content": ...}

        Raises:
            UpstreamError: on any transport or API failure.
        """
        try:
            state = await self.graph.ainvoke({
                "messages": to_langchain_messages(history),
                "reply": None,
            })
        except Exception as e:
            logger.error(f"Completion API error: {e}")
            raise UpstreamError("Failed to generate response") from e

        return {"role": "assistant", "content": _text_of(state["reply"]) or ""}

    async def summarize_title(self, content: str) -> str:
        """Generate a short title for a thread from its first message. Never raises."""
        try:
            response = await self.title_model.ainvoke([
                SystemMessage(content=TITLE_INSTRUCTION),
                HumanMessage(content=content),
            ])
            title = _text_of(response).strip()
        except Exception as e:
            logger.error(f"Title generation failed, using fallback: {e}")
            return DEFAULT_TITLE

        return title[:MAX_TITLE_LENGTH] if title else DEFAULT_TITLE


def build_completion_client(settings: Settings) -> CompletionClient:
    """Create the production client from settings."""
    model_kwargs = {"temperature": settings.OPENAI_TEMPERATURE}
    if settings.OPENAI_API_KEY:
        model_kwargs["api_key"] = settings.OPENAI_API_KEY

    model = init_chat_model(settings.OPENAI_MODEL, model_provider="openai", **model_kwargs)
    title_model = init_chat_model(
        settings.OPENAI_MODEL,
        model_provider="openai",
        max_tokens=settings.TITLE_MAX_TOKENS,
        **model_kwargs,
    )
    return CompletionClient(
        model=model,
        title_model=title_model,
        window=ContextWindow(settings.MAX_CONTEXT_MESSAGES),
    )
