"""HTTP routes for point-to-point chat and conversation management."""
from typing import TYPE_CHECKING, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict

from chat_relay.limits import RequestLimit, rate_limit_dependency
from chat_relay.llm_base_models import iso_timestamp

if TYPE_CHECKING:
    from chat_relay.chat_coordinator import ChatCoordinator


class ChatRequest(BaseModel):
    """Body of ``POST /api/chat``."""
    model_config = ConfigDict(coerce_numbers_to_str=True)

    message: Optional[str] = None
    conversationId: Optional[str] = None
    userId: Optional[str] = None


def build_http_router(coordinator: "ChatCoordinator", limit: Optional[RequestLimit] = None) -> APIRouter:
    """Build a FastAPI APIRouter with the ``/api`` endpoints.

    Errors raised by the coordinator propagate to the app's exception
    handlers, which turn them into ``{"error": ...}`` responses.
    """
    dependencies = [Depends(rate_limit_dependency(limit))] if limit else []
    router = APIRouter(prefix="/api", dependencies=dependencies)

    @router.post("/chat")
    async def chat(body: ChatRequest):
        reply = await coordinator.chat(body.message, body.conversationId, body.userId)
        return {
            "response": reply.response,
            "conversationId": reply.conversation_id,
            "timestamp": iso_timestamp(reply.timestamp),
        }

    @router.get("/conversations/{user_id}/{conversation_id}")
    async def get_conversation(user_id: str, conversation_id: str):
        return coordinator.get_conversation(user_id, conversation_id)

    @router.delete("/conversations/{user_id}/{conversation_id}")
    async def clear_conversation(user_id: str, conversation_id: str):
        await coordinator.clear_conversation(user_id, conversation_id)
        return {"message": "Conversation cleared successfully"}

    @router.get("/health")
    async def health():
        return coordinator.health()

    return router
