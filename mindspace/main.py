from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mindspace.api import chat, conversations, mood, music, users
from mindspace.config import ALLOWED_ORIGINS, FIREBASE_CREDENTIALS_JSON, config
from mindspace.errors import MindSpaceError
from mindspace.services.firebase_auth import init_firebase, verify_token
from mindspace.utils.logger import logger, setup_logging

# -----------------------------------------------------------------------------
# Set up logging
# -----------------------------------------------------------------------------
setup_logging(config.get("logging", {}))


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_firebase(FIREBASE_CREDENTIALS_JSON)
    logger.info(f"✅ {app_cfg.get('name', 'API')} is starting up!")
    yield
    logger.info(f"{app_cfg.get('name', 'API')} shut down cleanly")


# -----------------------------------------------------------------------------
# Initialize FastAPI
# -----------------------------------------------------------------------------
app_cfg = config.get("app", {})
app = FastAPI(
    title=app_cfg.get("name", "MindSpace API"),
    version=app_cfg.get("version", "0.1.0"),
    lifespan=lifespan,
)

# -----------------------------------------------------------------------------
# CORS
# -----------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -----------------------------------------------------------------------------
# Error responses
# -----------------------------------------------------------------------------
@app.exception_handler(MindSpaceError)
async def mindspace_error_handler(request: Request, exc: MindSpaceError):
    logger.warning(f"⚠️ {exc.error_code} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# -----------------------------------------------------------------------------
# Protected routes with Firebase Auth
# -----------------------------------------------------------------------------
app.include_router(
    conversations.router,
    tags=["Conversations"],
    dependencies=[Depends(verify_token)]
)
app.include_router(
    chat.router,
    tags=["Chat"],
    dependencies=[Depends(verify_token)]
)
app.include_router(
    mood.router,
    tags=["Mood Tracking"],
    dependencies=[Depends(verify_token)]
)
app.include_router(
    music.router,
    tags=["Music Therapy"],
    dependencies=[Depends(verify_token)]
)
# /users/count is public; /users/me verifies the token itself
app.include_router(users.router, tags=["Users"])


# -----------------------------------------------------------------------------
# Root
# -----------------------------------------------------------------------------
@app.get("/")
async def root():
    return {"message": f"Welcome to {app_cfg.get('name', 'the API')}!"}
