from typing import List, Optional

from mindspace.errors import ValidationError
from mindspace.models.chat import Message, MessageRole
from mindspace.services.conversation_store import ConversationRepository
from mindspace.utils.logger import logger


class ChatSession:
    """
    In-memory state for one active conversation view.

    `messages` mirrors what has been persisted for the conversation. A user
    message is appended before it is stored and removed again only if the
    store rejects it; once stored it stays even when the reply fails.
    """

    def __init__(
        self,
        user_id: Optional[str],
        repository: ConversationRepository,
        responder,
        mood_tracker=None,
        conversation_id: Optional[str] = None,
    ):
        self.user_id = user_id
        self.repository = repository
        self.responder = responder
        self.mood_tracker = mood_tracker
        self.conversation_id = conversation_id
        self.messages: List[Message] = []
        self.is_loading = False
        self.error: Optional[str] = None

    def load(self) -> bool:
        """Replace the in-memory list with the stored conversation, if any."""
        if not self.user_id or not self.conversation_id:
            return False
        conversation = self.repository.get_conversation(self.user_id, self.conversation_id)
        if conversation is None:
            return False
        self.messages = list(conversation.messages)
        return True

    def _persist(self, message: Message):
        if self.conversation_id is None:
            self.conversation_id = self.repository.create_conversation(self.user_id, message)
        else:
            self.repository.add_message(self.user_id, self.conversation_id, message)

    async def send_message(self, content: str) -> Optional[Message]:
        if not self.user_id:
            self.error = "User not authenticated"
            return None
        if not content or not content.strip():
            raise ValidationError("Message cannot be empty", field="message")

        self.error = None
        self.is_loading = True
        user_message = Message(role=MessageRole.USER, content=content)
        self.messages.append(user_message)
        try:
            try:
                self._persist(user_message)
            except Exception:
                self.messages.remove(user_message)
                raise

            history = self.messages[:-1]
            assistant_message = await self.responder.generate_reply(self.user_id, content, history)
            self.repository.add_message(self.user_id, self.conversation_id, assistant_message)
            self.messages.append(assistant_message)
        except Exception as e:
            logger.error(f"❌ Error sending message for user {self.user_id}: {e}", exc_info=True)
            self.error = "Failed to send message"
            raise
        finally:
            self.is_loading = False

        await self._track_mood(content)
        return assistant_message

    async def _track_mood(self, content: str):
        if self.mood_tracker is None:
            return
        try:
            await self.mood_tracker.track(self.user_id, content)
        except Exception as e:
            logger.warning(f"⚠️ Mood tracking failed for user {self.user_id}: {e}")

    def clear_messages(self):
        """Reset local state only; stored conversations are untouched."""
        self.messages = []
        self.error = None
