import logging
from functools import lru_cache
from typing import Optional
from urllib.parse import urlparse
from uuid import UUID

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict

from business.entities import SessionStatus, User
from business.feed_resolver import FeedResolver
from business.podcast_service import NotLoggedIn, PodcastService
from business.rss import (FeedFetchError, FeedParseError, FeedParserRssParser,
                          RequestsFeedFetcher)
from persistence.datastore import InMemoryDatastore, NotFound, UnknownUser

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    fetch_timeout_seconds: float = 10.0
    user_agent: str = "pods/0.1"
    cors_origins: list[str] = ["http://localhost:5173"]
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="PODS_", env_file=".pods.env", frozen=True
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()


def build_podcast_service(settings: Settings) -> PodcastService:
    datastore = InMemoryDatastore()
    resolver = FeedResolver(
        datastore=datastore,
        fetcher=RequestsFeedFetcher(
            timeout=settings.fetch_timeout_seconds, user_agent=settings.user_agent
        ),
        parser=FeedParserRssParser(),
    )
    return PodcastService(datastore=datastore, feed_resolver=resolver)


def podcast_service(request: Request) -> PodcastService:
    return request.app.state.podcast_service


class CreateUser(BaseModel):
    name: str


class PodcastRSS(BaseModel):
    rss: str


def is_feed_url(feed_url: str) -> bool:
    parsed = urlparse(feed_url)
    return parsed.scheme in ("http", "https") and bool(parsed.hostname)


router = APIRouter()


@router.get("/")
def hello() -> str:
    return "hello world"


@router.post("/users", status_code=status.HTTP_201_CREATED)
def add_user(
    payload: CreateUser,
    service: PodcastService = Depends(podcast_service),
) -> User:
    return service.create_user(payload.name)


@router.get("/users/{user_id}")
def get_user(
    user_id: UUID,
    service: PodcastService = Depends(podcast_service),
) -> User:
    try:
        return service.get_user(user_id)
    except UnknownUser:
        raise HTTPException(status_code=404, detail="User not found")


@router.get("/login")
def user_status(service: PodcastService = Depends(podcast_service)) -> SessionStatus:
    return service.status()


@router.post("/login/{user_id}")
def login(
    user_id: UUID,
    service: PodcastService = Depends(podcast_service),
) -> SessionStatus:
    try:
        return service.login(user_id)
    except UnknownUser:
        raise HTTPException(status_code=404, detail="User not found")


@router.post("/podcast", status_code=status.HTTP_201_CREATED)
@router.post("/subscribe", status_code=status.HTTP_201_CREATED)
def subscribe(
    payload: PodcastRSS,
    service: PodcastService = Depends(podcast_service),
) -> list[str]:
    if not is_feed_url(payload.rss):
        raise HTTPException(status_code=400, detail="Invalid feed url")
    try:
        return service.subscribe(payload.rss)
    except NotLoggedIn:
        raise HTTPException(status_code=400, detail="Not logged in")
    except FeedFetchError:
        raise HTTPException(status_code=400, detail="Could not fetch feed")
    except FeedParseError:
        raise HTTPException(status_code=400, detail="Could not read feed")
    except NotFound:
        raise HTTPException(status_code=404, detail="Not found")


async def invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


async def internal_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


def create_app(
    settings: Optional[Settings] = None, service: Optional[PodcastService] = None
) -> FastAPI:
    if settings is None:
        settings = get_settings()
    logging.basicConfig(level=settings.log_level)

    app = FastAPI()
    app.state.podcast_service = (
        service if service is not None else build_podcast_service(settings)
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, invalid_request)
    app.add_exception_handler(Exception, internal_error)
    app.include_router(router)
    return app


app = create_app()
