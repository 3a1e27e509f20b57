import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from .auth import CredentialVerifier, PasswordHasher, project_identity
from .config import settings
from .db import get_db, init_db
from .errors import AuthError, TokenExpiredError, UserExistsError
from .models import User
from .schemas import Credentials, IdentityClaim, Token, UserCreate, UserResponse
from .store import SqlUserStore
from .tokens import TokenService
from .utils.event_logger import log_auth_event

logger = logging.getLogger(__name__)

# Built once from the immutable configs; shared read-only by all requests.
password_hasher = PasswordHasher.from_config(settings.hashing_config())
token_service = TokenService(settings.token_config())


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Auth service started")
    yield


app = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError):
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": exc.detail},
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_user_store(db: Session = Depends(get_db)) -> SqlUserStore:
    return SqlUserStore(db)


def get_credential_verifier(store: SqlUserStore = Depends(get_user_store)) -> CredentialVerifier:
    return CredentialVerifier(store, password_hasher)


def get_token_service() -> TokenService:
    return token_service


def get_current_identity(
    request: Request,
    authorization: Optional[str] = Header(default=None, alias="Authorization"),
    tokens: TokenService = Depends(get_token_service),
) -> IdentityClaim:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    token = authorization.split(" ", 1)[1].strip()
    try:
        return tokens.verify_token(token)
    except AuthError as e:
        reason = "expired" if isinstance(e, TokenExpiredError) else "invalid"
        log_auth_event("token_rejected", None, request, reason=reason)
        raise


@app.post("/signup", response_model=UserResponse)
def signup(new_user: UserCreate, request: Request, store: SqlUserStore = Depends(get_user_store)):
    if store.find_by_username(new_user.username):
        raise HTTPException(status_code=400, detail="Username already exists")

    user = User(
        username=new_user.username,
        password_hash=password_hasher.hash(new_user.password),
        first_name=new_user.first_name,
        last_name=new_user.last_name,
        gender=new_user.gender,
        birthdate=new_user.birthdate,
        email=new_user.email,
    )
    try:
        user = store.create(user)
    except UserExistsError as e:
        raise HTTPException(status_code=400, detail="Username already exists") from e

    log_auth_event("signup", user.username, request)
    return user


@app.post("/users/login", response_model=Token)
def login(
    credentials: Credentials,
    request: Request,
    verifier: CredentialVerifier = Depends(get_credential_verifier),
    tokens: TokenService = Depends(get_token_service),
):
    try:
        user = verifier.verify_credentials(credentials)
    except AuthError:
        log_auth_event("login_failure", credentials.username, request)
        raise

    log_auth_event("login_success", user.username, request)
    return Token(token=tokens.generate_token(project_identity(user)))


@app.get("/whoAmI", response_model=IdentityClaim)
def who_am_i(identity: IdentityClaim = Depends(get_current_identity)):
    return identity
