import json
import re
from typing import List, Optional, Sequence

import google.generativeai as genai
from pydantic import ValidationError as PydanticValidationError

from mindspace.errors import ResponseGenerationError
from mindspace.models.chat import Message, MessageRole
from mindspace.models.mood import MoodEntry
from mindspace.utils.logger import logger

COMPANION_PROMPT = """
You are a warm, supportive mental-wellness companion. You listen carefully,
reflect the user's feelings back to them, and offer gentle, practical
coping ideas (breathing, journaling, sleep hygiene, reaching out to others).
You are not a therapist and never diagnose. If the user mentions self-harm
or being in danger, encourage them to contact local emergency services or a
crisis line right away.

Conversation so far:
{history}

User: {message}

Reply in a few short, caring paragraphs.
"""

MOOD_PROMPT = """
Read the message below and estimate the writer's current mood.

Message: "{message}"

Return ONLY a valid JSON object with keys:
'moodScore' (number from 0 = very low to 10 = very good),
'sentiment' (one word such as "positive", "negative", "neutral", "anxious"),
'topics' (list drawn from "anxiety", "sleep", "energy", "stress", "relationships", "work"; empty if none apply).
Do not include any other text or markdown formatting outside the JSON structure.
"""

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


def strip_code_fences(raw: str) -> str:
    match = _FENCE_RE.match(raw.strip())
    return match.group(1).strip() if match else raw.strip()


def parse_mood_analysis(raw: str) -> Optional[MoodEntry]:
    """Turn the model's JSON answer into a MoodEntry, or None if unusable."""
    if not raw:
        return None
    result = strip_code_fences(raw)
    try:
        data = json.loads(result)
        return MoodEntry(
            mood_score=data["moodScore"],
            sentiment=str(data["sentiment"]).strip(),
            topics=[str(t).lower() for t in data.get("topics") or []],
        )
    except (json.JSONDecodeError, KeyError, TypeError, PydanticValidationError) as e:
        logger.error(f"❌ Could not parse mood analysis: {e}. Raw response snippet: {result[:200]}")
        return None


def format_history(history: Sequence[Message]) -> str:
    lines = []
    for message in history:
        speaker = "User" if message.role == MessageRole.USER.value else "Companion"
        lines.append(f"{speaker}: {message.content}")
    return "\n".join(lines) or "(no earlier messages)"


class GeminiService:
    """Generates companion replies and mood estimates with Gemini."""

    def __init__(
        self,
        api_key: str,
        model_name: str = "gemini-2.0-flash",
        temperature: float = 0.7,
        max_output_tokens: int = 1024,
        history_window: int = 20,
        model=None,
    ):
        if model is None:
            if not api_key:
                raise ValueError("GEMINI_API_KEY not set in environment")
            genai.configure(api_key=api_key)
            model = genai.GenerativeModel(
                model_name,
                generation_config={"temperature": temperature, "max_output_tokens": max_output_tokens},
            )
        self.model = model
        self.history_window = history_window

    async def _generate_text(self, prompt: str) -> Optional[str]:
        response = await self.model.generate_content_async(prompt)
        return response.text.strip() if hasattr(response, "text") and response.text else None

    async def generate_reply(
        self, user_id: str, message_text: str, history: List[Message] = None
    ) -> Message:
        """Return the assistant's reply to `message_text` as a Message."""
        recent = (history or [])[-self.history_window:]
        prompt = COMPANION_PROMPT.format(history=format_history(recent), message=message_text)
        try:
            text = await self._generate_text(prompt)
        except Exception as e:
            logger.error(f"❌ Gemini API error in generate_reply for user {user_id}: {e}", exc_info=True)
            raise ResponseGenerationError() from e
        if not text:
            logger.error(f"❌ Gemini returned empty response for user {user_id}")
            raise ResponseGenerationError("Gemini returned empty response")
        logger.info(f"✅ Gemini reply generated for user {user_id}")
        return Message(role=MessageRole.ASSISTANT, content=text)

    async def analyze_mood(self, message_text: str) -> Optional[MoodEntry]:
        try:
            raw = await self._generate_text(MOOD_PROMPT.format(message=message_text))
        except Exception as e:
            logger.error(f"❌ Gemini API error in analyze_mood: {e}", exc_info=True)
            return None
        return parse_mood_analysis(raw)
