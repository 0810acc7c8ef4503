# firebase_auth.py
import json

import firebase_admin
from firebase_admin import auth, credentials
from fastapi import Request
from tenacity import retry, stop_after_attempt, wait_exponential

from mindspace.errors import AuthenticationError, RemoteServiceError
from mindspace.utils.logger import logger


def init_firebase(credentials_json: str = None):
    """
    Initialize the Firebase Admin SDK once, from a service-account JSON
    string when given, else from application default credentials.
    """
    if firebase_admin._apps:
        return firebase_admin.get_app()
    if credentials_json:
        cred = credentials.Certificate(json.loads(credentials_json))
    else:
        cred = credentials.ApplicationDefault()
    app = firebase_admin.initialize_app(cred)
    logger.info("✅ Firebase Admin initialized")
    return app


async def verify_token(request: Request) -> dict:
    """
    FastAPI dependency: verify the Firebase ID token sent as
    `Authorization: Bearer <token>` and attach its claims to
    request.state.user. Rejections never echo the SDK's error text.
    """
    scheme, _, id_token = request.headers.get("Authorization", "").partition(" ")
    if scheme != "Bearer" or not id_token.strip():
        raise AuthenticationError("Missing or invalid Authorization header")
    try:
        decoded_token = auth.verify_id_token(id_token.strip())
    except auth.CertificateFetchError as e:
        logger.error(f"❌ Could not fetch Firebase signing certificates: {e}")
        raise RemoteServiceError("Token verification is temporarily unavailable")
    except (auth.InvalidIdTokenError, auth.UserDisabledError, ValueError) as e:
        logger.warning(f"⚠️ Rejected ID token: {type(e).__name__}")
        raise AuthenticationError()
    if not decoded_token.get("uid"):
        raise AuthenticationError("Token has no user id")
    request.state.user = decoded_token
    return decoded_token


@retry(wait=wait_exponential(multiplier=1, max=10), stop=stop_after_attempt(3), reraise=True)
def count_active_users(max_results: int = 1000) -> int:
    """Count enabled accounts on the first page of Firebase users."""
    page = auth.list_users(max_results=max_results)
    count = sum(1 for user in page.users if not user.disabled)
    logger.info(f"✅ Counted {count} active users")
    return count
