"""Entry point for the FastAPI-powered list service."""

from __future__ import annotations

import json
import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from .config import settings
from .database import Database
from .errors import (
    InsufficientDetail,
    ListValidationError,
    MedialistError,
    NotFound,
    PermissionDenied,
    UpstreamFailure,
)
from .models import ListCreateRequest, ListItemDescriptor
from .permissions import ActorRef
from .services.medialists import MedialistService
from .services.tmdb import TMDBClient

logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))
logger = logging.getLogger(__name__)

ACTOR_HEADER = "x-actor-id"

ERROR_STATUS: tuple[tuple[type[MedialistError], int], ...] = (
    (PermissionDenied, 403),
    (InsufficientDetail, 403),
    (ListValidationError, 403),
    (NotFound, 404),
    (UpstreamFailure, 500),
)

app: FastAPI


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    exit_stack = AsyncExitStack()
    provider: TMDBClient | None = None
    if settings.tmdb_api_key:
        tmdb_http_client = await exit_stack.enter_async_context(
            httpx.AsyncClient(
                base_url=str(settings.tmdb_api_url).rstrip("/"),
                timeout=httpx.Timeout(settings.provider_timeout_seconds, connect=5.0),
            )
        )
        provider = TMDBClient(settings, tmdb_http_client)
    else:
        logger.warning("TMDB_API_KEY not configured; provider lookups are disabled")

    database = Database(settings.database_url)
    await database.create_all()

    medialist_service = MedialistService(settings, database.session_factory, provider)

    fastapi_app.state.medialist_service = medialist_service
    fastapi_app.state.database = database
    await medialist_service.start()

    try:
        yield
    finally:  # pragma: no cover - teardown path exercised at runtime
        await database.dispose()
        await exit_stack.aclose()


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="Curated media lists reconciled against external catalogs",
        version="1.0.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )

    register_routes(fastapi_app)
    return fastapi_app


def get_medialist_service(app: FastAPI) -> MedialistService:
    service = getattr(app.state, "medialist_service", None)
    if not isinstance(service, MedialistService):
        raise RuntimeError("Medialist service not initialised")
    return service


def http_error(exc: MedialistError) -> HTTPException:
    """Translate a domain failure into its HTTP status."""

    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))


def register_routes(fastapi_app: FastAPI) -> None:
    async def _resolve_caller(request: Request) -> ActorRef:
        service = get_medialist_service(fastapi_app)
        raw_actor = (request.headers.get(ACTOR_HEADER) or "").strip()
        if not raw_actor.isdigit():
            raise HTTPException(status_code=403, detail="Authentication required")
        caller = await service.get_caller(int(raw_actor))
        if caller is None:
            raise HTTPException(status_code=403, detail="Unknown actor")
        return caller

    async def _read_body(request: Request, model: type[BaseModel]) -> Any:
        try:
            payload = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            payload = {}
        if not isinstance(payload, dict):
            raise HTTPException(status_code=403, detail="Invalid payload")
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise HTTPException(
                status_code=403,
                detail=exc.errors(include_url=False, include_context=False),
            ) from exc

    @fastapi_app.exception_handler(RequestValidationError)
    async def _invalid_request(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        # Malformed query and path parameters are refused like malformed bodies.
        return JSONResponse(
            status_code=403, content={"detail": jsonable_encoder(exc.errors())}
        )

    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.get("/lists")
    async def list_lists(
        request: Request,
        name_filter: str | None = Query(default=None, alias="filter"),
        created_by: int | None = Query(default=None, alias="createdBy"),
        sort: str | None = None,
        take: int | None = Query(default=None, ge=1),
        skip: int | None = Query(default=None, ge=0),
    ) -> JSONResponse:
        service = get_medialist_service(fastapi_app)
        caller = await _resolve_caller(request)
        try:
            results = await service.list_lists(
                caller,
                name_filter=name_filter,
                created_by=created_by,
                sort=sort,
                take=take,
                skip=skip,
            )
        except MedialistError as exc:
            raise http_error(exc) from exc
        return JSONResponse(results.to_payload())

    @fastapi_app.post("/lists")
    async def create_list(request: Request) -> JSONResponse:
        service = get_medialist_service(fastapi_app)
        caller = await _resolve_caller(request)
        body = await _read_body(request, ListCreateRequest)
        try:
            created = await service.create_list(caller, body)
        except MedialistError as exc:
            raise http_error(exc) from exc
        return JSONResponse(created.to_payload())

    @fastapi_app.get("/lists/count")
    async def count_lists(request: Request) -> dict[str, int]:
        service = get_medialist_service(fastapi_app)
        await _resolve_caller(request)
        return {"total": await service.count_lists()}

    @fastapi_app.get("/lists/{list_id}")
    async def get_list(request: Request, list_id: int) -> JSONResponse:
        service = get_medialist_service(fastapi_app)
        caller = await _resolve_caller(request)
        try:
            medialist = await service.get_list(caller, list_id)
        except MedialistError as exc:
            raise http_error(exc) from exc
        return JSONResponse(medialist.to_payload())

    @fastapi_app.delete("/lists/{list_id}")
    async def delete_list(request: Request, list_id: int) -> dict[str, Any]:
        service = get_medialist_service(fastapi_app)
        caller = await _resolve_caller(request)
        try:
            deleted_id = await service.delete_list(caller, list_id)
        except MedialistError as exc:
            raise http_error(exc) from exc
        return {"id": deleted_id, "deleted": True}

    @fastapi_app.post("/lists/{list_id}/items")
    async def add_list_item(request: Request, list_id: int) -> JSONResponse:
        service = get_medialist_service(fastapi_app)
        caller = await _resolve_caller(request)
        descriptor = await _read_body(request, ListItemDescriptor)
        try:
            medialist = await service.add_item(caller, list_id, descriptor)
        except MedialistError as exc:
            raise http_error(exc) from exc
        except Exception as exc:
            logger.exception("Adding an item to list %s failed", list_id)
            raise HTTPException(status_code=500, detail=str(exc)) from exc
        return JSONResponse(medialist.to_payload())


app = create_app()
