from typing import TypedDict, Optional, List, TYPE_CHECKING
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage, AIMessage
from langgraph.graph import StateGraph, START, END
import logging

if TYPE_CHECKING:
    from services.context import ContextWindow

logger = logging.getLogger(__name__)


class ReplyState(TypedDict):
    messages: List[BaseMessage]
    reply: Optional[AIMessage]


def build_reply_graph(model: BaseChatModel, window: "ContextWindow"):
    """Compile the graph that turns a conversation into one assistant reply."""

    def apply_window(state: ReplyState):
        """Trim the conversation to the configured context window."""
        messages = window.apply(state["messages"])
        if len(messages) < len(state["messages"]):
            logger.info(f"Context trimmed from {len(state['messages'])} to {len(messages)} messages")
        return {"messages": messages}

    async def llm(state: ReplyState):
        """Generate the assistant reply."""
        response = await model.ainvoke(state["messages"])
        return {"reply": response}

    return (
        StateGraph(ReplyState)
        .add_node("window", apply_window)
        .add_node("llm", llm)
        .add_edge(START, "window")
        .add_edge("window", "llm")
        .add_edge("llm", END)
        .compile()
    )
