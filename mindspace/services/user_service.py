from typing import Optional

from google.cloud import firestore

from mindspace.errors import ValidationError
from mindspace.models.chat import utcnow
from mindspace.utils.logger import logger


def ensure_user_document(
    db: firestore.Client,
    user_id: str,
    email: Optional[str] = None,
    display_name: Optional[str] = None,
) -> bool:
    """
    Create users/{uid} on first sight, otherwise refresh its activity fields.
    Returns True when the document was created.
    """
    if not user_id:
        raise ValidationError("User ID is required", field="user_id")

    user_ref = db.collection("users").document(user_id)
    now = utcnow()
    profile = {
        "email": email,
        "displayName": display_name or "",
        "lastActive": now,
        "updatedAt": now,
    }
    if not user_ref.get().exists:
        logger.info(f"Creating new user document for: {user_id}")
        user_ref.set({**profile, "createdAt": now, "uid": user_id})
        return True

    logger.debug(f"Updating existing user document for: {user_id}")
    user_ref.set(profile, merge=True)
    return False
