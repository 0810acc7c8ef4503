from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from fastapi.concurrency import run_in_threadpool

from mindspace.dependencies import get_firestore_client
from mindspace.services.firebase_auth import count_active_users, verify_token
from mindspace.services.user_service import ensure_user_document
from mindspace.utils.logger import logger

router = APIRouter(prefix="/users")


@router.get("/count")
async def user_count():
    """Number of enabled accounts, for the dashboard bubble."""
    # Retries sleep between attempts; keep them off the event loop
    try:
        count = await run_in_threadpool(count_active_users)
    except Exception as e:
        logger.error(f"❌ Error fetching user count: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to fetch user count: {e}")
    return {"count": count, "timestamp": datetime.now(timezone.utc).isoformat()}


@router.post("/me")
async def register_user(
    token_data: dict = Depends(verify_token),
    db=Depends(get_firestore_client),
):
    created = ensure_user_document(
        db,
        token_data["uid"],
        email=token_data.get("email"),
        display_name=token_data.get("name"),
    )
    return {"uid": token_data["uid"], "created": created}
