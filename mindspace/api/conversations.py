import asyncio
import json
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from mindspace.dependencies import get_conversation_repository, get_current_user_id
from mindspace.models.chat import (
    AddMessageRequest,
    Conversation,
    ConversationListItem,
    Message,
    UpdateTitleRequest,
)
from mindspace.services.conversation_store import ConversationRepository
from mindspace.utils.logger import logger

router = APIRouter(prefix="/conversations")

# Seconds between keep-alive comments on an idle stream
KEEPALIVE_INTERVAL = 15

# Queued when the watched conversation disappears
_DELETED = object()


@router.get("", response_model=List[ConversationListItem])
async def list_conversations(
    user_id: str = Depends(get_current_user_id),
    repository: ConversationRepository = Depends(get_conversation_repository),
):
    logger.info(f"📡 Listing conversations for user {user_id}")
    return repository.get_conversations(user_id)


@router.delete("")
async def delete_all_conversations(
    user_id: str = Depends(get_current_user_id),
    repository: ConversationRepository = Depends(get_conversation_repository),
):
    deleted = repository.delete_all_conversations(user_id)
    return {"status": "deleted", "deleted": deleted}


@router.get("/{conversation_id}", response_model=Conversation)
async def get_conversation(
    conversation_id: str,
    user_id: str = Depends(get_current_user_id),
    repository: ConversationRepository = Depends(get_conversation_repository),
):
    conversation = repository.get_conversation(user_id, conversation_id)
    if conversation is None:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return conversation


@router.post("/{conversation_id}/messages", response_model=Message, status_code=201)
async def add_message(
    conversation_id: str,
    request: AddMessageRequest,
    user_id: str = Depends(get_current_user_id),
    repository: ConversationRepository = Depends(get_conversation_repository),
):
    message = Message(role=request.role, content=request.content)
    repository.add_message(user_id, conversation_id, message)
    return message


@router.patch("/{conversation_id}")
async def update_title(
    conversation_id: str,
    request: UpdateTitleRequest,
    user_id: str = Depends(get_current_user_id),
    repository: ConversationRepository = Depends(get_conversation_repository),
):
    repository.update_conversation_title(user_id, conversation_id, request.title)
    return {"id": conversation_id, "title": request.title.strip()}


@router.delete("/{conversation_id}")
async def delete_conversation(
    conversation_id: str,
    user_id: str = Depends(get_current_user_id),
    repository: ConversationRepository = Depends(get_conversation_repository),
):
    repository.delete_conversation(user_id, conversation_id)
    return {"status": "deleted", "id": conversation_id}


async def conversation_events(repository: ConversationRepository, user_id: str, conversation_id: str):
    """
    Server-sent events carrying the full conversation on every change.
    Snapshot callbacks arrive on the listener thread and are handed to the
    event loop through a queue. A final `deleted` event ends the stream
    once the conversation is gone.
    """
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    def on_change(conversation: Conversation):
        loop.call_soon_threadsafe(queue.put_nowait, conversation)

    def on_deleted():
        loop.call_soon_threadsafe(queue.put_nowait, _DELETED)

    subscription = repository.subscribe_to_conversation(user_id, conversation_id, on_change, on_deleted)
    logger.info(f"SSE - Subscribed to conversation {conversation_id}")
    try:
        while True:
            try:
                conversation = await asyncio.wait_for(queue.get(), timeout=KEEPALIVE_INTERVAL)
            except asyncio.TimeoutError:
                yield ": keep-alive\n\n"
                continue
            if conversation is _DELETED:
                logger.info(f"SSE - Conversation {conversation_id} was deleted. Closing stream.")
                yield f"event: deleted\ndata: {json.dumps({'id': conversation_id})}\n\n"
                return
            yield f"data: {conversation.model_dump_json(by_alias=True)}\n\n"
    except asyncio.CancelledError:
        logger.info(f"SSE - Client disconnected from conversation {conversation_id}. Cleaning up.")
        raise
    finally:
        subscription.unsubscribe()


@router.get("/{conversation_id}/stream")
async def stream_conversation(
    conversation_id: str,
    user_id: str = Depends(get_current_user_id),
    repository: ConversationRepository = Depends(get_conversation_repository),
):
    if repository.get_conversation(user_id, conversation_id) is None:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return StreamingResponse(
        conversation_events(repository, user_id, conversation_id),
        media_type="text/event-stream",
    )
