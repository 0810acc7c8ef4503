from fastapi import APIRouter, Depends, HTTPException

from mindspace.dependencies import (
    get_conversation_repository,
    get_current_user_id,
    get_gemini_service,
    get_mood_tracker,
)
from mindspace.models.chat import SendMessageRequest, SendMessageResponse
from mindspace.services.chat_session import ChatSession
from mindspace.services.conversation_store import ConversationRepository
from mindspace.utils.logger import logger

router = APIRouter(prefix="/chat")


@router.post("/send", response_model=SendMessageResponse)
async def send_message(
    chat_request: SendMessageRequest,
    user_id: str = Depends(get_current_user_id),
    repository: ConversationRepository = Depends(get_conversation_repository),
    responder=Depends(get_gemini_service),
    mood_tracker=Depends(get_mood_tracker),
):
    """
    Send a user message and return the assistant's reply. Starts a new
    conversation when no conversationId is given.
    """
    logger.info(f"📡 Chat received from user {user_id}")
    session = ChatSession(
        user_id,
        repository,
        responder,
        mood_tracker=mood_tracker,
        conversation_id=chat_request.conversation_id,
    )
    if chat_request.conversation_id and not session.load():
        raise HTTPException(status_code=404, detail="Conversation not found")

    assistant_message = await session.send_message(chat_request.message)
    return SendMessageResponse(
        conversation_id=session.conversation_id,
        user_message=session.messages[-2],
        assistant_message=assistant_message,
    )
