from fastapi import APIRouter, FastAPI, Depends, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordBearer
from contextlib import asynccontextmanager
from typing import List, Optional
import logging

logger = logging.getLogger(__name__)

# Local imports
from config import Settings
from create_tables import create_tables
from database import get_db, build_engine, build_session_factory
from dtos.chat_request import ChatRequest
from errors import ChatAppError, AuthError
from models import User
from schemas import (
    ThreadResponse, MessageResponse, ThreadWithMessages, DeleteResponse,
    UserCredentials, UserResponse, AuthResponse, MessageOnly,
)
from services import ThreadService, AuthService, CompletionClient, build_completion_client
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
from sqlalchemy import text

COOKIE_NAME = "access_token"

router = APIRouter()

# OAuth2 configuration; the session cookie is accepted as well
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/login", auto_error=False)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings

    # Create tables if they don't exist
    create_tables(app.state.engine)

    if app.state.completion_client is None:
        app.state.completion_client = build_completion_client(settings)
    app.state.thread_service = ThreadService(
        completion=app.state.completion_client,
        atomic_turns=settings.ATOMIC_TURNS,
    )

    yield

    app.state.engine.dispose()


def create_app(
    settings: Optional[Settings] = None,
    engine: Optional[Engine] = None,
    completion_client: Optional[CompletionClient] = None,
) -> FastAPI:
    """Build the application. Tests pass their own engine and completion client."""
    settings = settings or Settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Chat Threads API",
        version="1.0.0",
        lifespan=lifespan
    )

    app.state.settings = settings
    app.state.engine = engine or build_engine(settings.DATABASE_URL)
    app.state.session_factory = build_session_factory(app.state.engine)
    app.state.completion_client = completion_client
    app.state.thread_service = None
    app.state.auth_service = AuthService(
        secret_key=settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
        access_token_expire_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
    )

    # CORS configuration
    origins = settings.ALLOWED_ORIGINS.split(",")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=3600
    )

    register_error_handlers(app)
    app.include_router(router)
    return app


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ChatAppError)
    async def chat_app_error_handler(request: Request, exc: ChatAppError):
        if exc.status_code >= 500:
            # Details stay in the logs
            logger.error(f"{request.method} {request.url.path} failed: {exc!r}", exc_info=exc.__cause__)
            detail = exc.public_message
        else:
            detail = exc.message

        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
        return JSONResponse(status_code=exc.status_code, content={"detail": detail}, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError):
        issues = ", ".join(error.get("msg", "invalid value") for error in exc.errors())
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": f"Invalid input: {issues}"})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Dependencies
def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_thread_service(request: Request) -> ThreadService:
    return request.app.state.thread_service


async def get_current_user(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
) -> User:
    """Get current user from the bearer token or the session cookie."""
    token = token or request.cookies.get(COOKIE_NAME)
    if not token:
        raise AuthError("Not authenticated")

    token_payload = auth_service.decode_token(token)
    if token_payload is None or token_payload.type != "access":
        raise AuthError("Could not validate credentials")

    try:
        user_id = int(token_payload.sub)
    except ValueError:
        raise AuthError("Could not validate credentials")

    user = auth_service.get_user_by_id(db, user_id)
    if user is None:
        raise AuthError("Could not validate credentials")

    return user


def set_session_cookie(request: Request, response: Response, token: str) -> None:
    settings: Settings = request.app.state.settings
    response.set_cookie(
        key=COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


@router.get("/health")
async def health_check():
    return {"status": "healthy", "service": "chat-threads-api"}


@router.get("/health/detailed")
async def detailed_health_check(request: Request, db: Session = Depends(get_db)):
    """Health check for the database and completion service configuration."""
    health_status = {
        "status": "healthy",
        "service": "chat-threads-api",
        "checks": {}
    }

    try:
        db.execute(text("SELECT 1"))
        health_status["checks"]["database"] = {"status": "healthy"}
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        health_status["checks"]["database"] = {"status": "unhealthy"}
        health_status["status"] = "unhealthy"

    settings: Settings = request.app.state.settings
    health_status["checks"]["completion"] = {
        "status": "configured" if settings.OPENAI_API_KEY else "not_configured",
        "model": settings.OPENAI_MODEL,
    }

    return health_status


# Authentication endpoints
@router.post("/api/register", response_model=AuthResponse)
async def register(
    credentials: UserCredentials,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """Register a new user and log them in."""
    user = auth_service.create_user(db, credentials.username, credentials.password)

    access_token = auth_service.create_access_token(user.id)
    set_session_cookie(request, response, access_token)

    return AuthResponse(
        message="Registration successful",
        user=UserResponse.model_validate(user),
        access_token=access_token,
    )


@router.post("/api/login", response_model=AuthResponse)
async def login(
    credentials: UserCredentials,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """Login with username and password."""
    user = auth_service.authenticate_user(db, credentials.username, credentials.password)
    if not user:
        raise AuthError("Incorrect username or password")

    access_token = auth_service.create_access_token(user.id)
    set_session_cookie(request, response, access_token)

    return AuthResponse(
        message="Login successful",
        user=UserResponse.model_validate(user),
        access_token=access_token,
    )


@router.post("/api/logout", response_model=MessageOnly)
async def logout(response: Response) -> MessageOnly:
    response.delete_cookie(COOKIE_NAME)
    return MessageOnly(message="Logout successful")


@router.get("/api/user", response_model=UserResponse)
async def get_current_user_info(current_user: User = Depends(get_current_user)) -> UserResponse:
    """Get current user information."""
    return UserResponse.model_validate(current_user)


# Thread endpoints
@router.get("/api/threads", response_model=List[ThreadResponse])
async def list_threads(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    thread_service: ThreadService = Depends(get_thread_service),
) -> List[ThreadResponse]:
    """List all threads of the authenticated user, newest first."""
    threads = thread_service.list_threads(db, current_user.id)
    return [ThreadResponse.model_validate(thread) for thread in threads]


@router.get("/api/threads/{thread_id}/messages", response_model=List[MessageResponse])
async def get_messages(
    thread_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    thread_service: ThreadService = Depends(get_thread_service),
) -> List[MessageResponse]:
    """Get the messages of a thread in chronological order."""
    messages = thread_service.get_messages(db, thread_id, current_user.id)
    return [MessageResponse.model_validate(message) for message in messages]


@router.post("/api/threads", response_model=ThreadWithMessages)
async def create_thread(
    req: ChatRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    thread_service: ThreadService = Depends(get_thread_service),
) -> ThreadWithMessages:
    """Start a new conversation with its first message."""
    thread, messages = await thread_service.create_thread(db, current_user.id, req.message)
    return ThreadWithMessages(
        thread=ThreadResponse.model_validate(thread),
        messages=[MessageResponse.model_validate(message) for message in messages],
    )


@router.post("/api/threads/{thread_id}/messages", response_model=List[MessageResponse])
async def add_message(
    thread_id: int,
    req: ChatRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    thread_service: ThreadService = Depends(get_thread_service),
) -> List[MessageResponse]:
    """Send a message to an existing thread and get the assistant's reply."""
    messages = await thread_service.append_message(db, thread_id, current_user.id, req.message)
    return [MessageResponse.model_validate(message) for message in messages]


@router.delete("/api/threads/{thread_id}", response_model=DeleteResponse)
async def delete_thread(
    thread_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    thread_service: ThreadService = Depends(get_thread_service),
) -> DeleteResponse:
    """Delete a thread and all of its messages."""
    thread_service.delete_thread(db, thread_id, current_user.id)
    return DeleteResponse(success=True)


app = create_app()
