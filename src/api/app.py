"""FastAPI application exposing study search, detail, export and assistant endpoints."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Literal, Optional, Union

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.assistant import GeminiTextModel, StudyAssistant
from src.ingestion.errors import UpstreamError
from src.ingestion.eutils_client import EutilsClient
from src.ingestion.models import FilterSet, Study
from src.search import StudySearchService
from src.utils.config import Settings, load_settings

from .catalog import MIN_YEAR, filter_options, max_year
from .export import DEFAULT_EXPORT_COLUMNS, select_columns, to_csv

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"
EXPORT_FILENAME = "studies_export.csv"


class ChatRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: Optional[str] = None
    # Either an accession to look up or an already normalized study.
    context_study: Optional[Union[str, Dict[str, Any]]] = None


class ExportRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    study_ids: List[str] = Field(default_factory=list)
    studies: List[Dict[str, Any]] = Field(default_factory=list)
    columns: List[str] = Field(default_factory=lambda: list(DEFAULT_EXPORT_COLUMNS))
    format: Literal["csv", "json"] = "csv"


def _multi(request: Request, name: str) -> tuple[str, ...]:
    """Repeated query values, accepting both ``name`` and ``name[]``."""
    values = request.query_params.getlist(name) + request.query_params.getlist(f"{name}[]")
    return tuple(value for value in (v.strip() for v in values) if value)


def build_filter_set(
    request: Request,
    *,
    year_min: Optional[int],
    year_max: Optional[int],
    author: Optional[str],
    journal: Optional[str],
) -> FilterSet:
    year_range = None
    if year_min is not None or year_max is not None:
        year_range = (
            year_min if year_min is not None else MIN_YEAR,
            year_max if year_max is not None else max_year(),
        )
    return FilterSet(
        organisms=_multi(request, "organisms"),
        exp_types=_multi(request, "expTypes"),
        platforms=_multi(request, "platforms"),
        year_range=year_range,
        author=(author or "").strip() or None,
        journal=(journal or "").strip() or None,
        study_types=_multi(request, "studyTypes"),
    )


def create_app(
    settings: Optional[Settings] = None,
    *,
    search_service: Optional[StudySearchService] = None,
    assistant: Optional[StudyAssistant] = None,
) -> FastAPI:
    """Build the application; services default to live NCBI/Gemini clients."""
    settings = settings or load_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    search_service = search_service or StudySearchService(EutilsClient.from_settings(settings))
    assistant = assistant or StudyAssistant(
        GeminiTextModel(settings.google_api_key, settings.gemini_model),
        language=settings.assistant_language,
    )

    app = FastAPI(title="Omics Study Portal API", version=API_VERSION)
    app.state.settings = settings
    app.state.search_service = search_service
    app.state.assistant = assistant

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse({"error": exc.detail}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
        first = exc.errors()[0] if exc.errors() else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part not in ("query", "body"))
        message = first.get("msg", "Invalid request")
        return JSONResponse({"error": f"{location}: {message}" if location else message}, status_code=400)

    @app.exception_handler(Exception)
    async def unexpected_error(_request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error: %s", exc)
        return JSONResponse({"error": "Internal server error"}, status_code=500)

    def lookup_context(study_id: Optional[str]) -> Optional[Study]:
        if not study_id or not study_id.strip():
            return None
        try:
            return search_service.get_study_detail(study_id)
        except UpstreamError as e:
            logger.warning("Context study %s unavailable: %s", study_id, e)
            return None

    @app.get("/")
    def health() -> Dict[str, Any]:
        return {
            "status": "OK",
            "message": "Omics Study Portal API",
            "version": API_VERSION,
            "endpoints": {
                "studies": "/api/studies",
                "studyDetail": "/api/studies/:id",
                "samples": "/api/studies/:id/samples",
                "files": "/api/studies/:id/files",
                "export": "/api/export",
                "filters": "/api/filters/options",
                "assistant": "/api/assistant/chat",
                "recommendations": "/api/assistant/recommendations",
            },
        }

    @app.get("/api/studies")
    def search_studies(
        request: Request,
        q: Optional[str] = None,
        page: int = Query(1, ge=1),
        limit: int = Query(10, ge=1),
        sort: str = "relevant",
        year_min: Optional[int] = Query(None, alias="yearMin"),
        year_max: Optional[int] = Query(None, alias="yearMax"),
        author: Optional[str] = None,
        journal: Optional[str] = None,
    ) -> Dict[str, Any]:
        query = (q or "").strip()
        if query and settings.enhance_queries:
            query = assistant.enhance_query(query)
            logger.info("Search query rewritten to %r", query)

        filters = build_filter_set(request, year_min=year_min, year_max=year_max, author=author, journal=journal)
        result = search_service.search_page(query, filters=filters, sort=sort, page=page, limit=limit)
        return result.to_api()

    @app.get("/api/studies/{study_id}")
    def study_detail(study_id: str) -> Dict[str, Any]:
        try:
            study = search_service.get_study_detail(study_id)
        except UpstreamError as e:
            logger.warning("NCBI detail lookup failed for %s: %s", study_id, e)
            study = None
        if study is None:
            raise HTTPException(status_code=404, detail="Study not found")
        return study.to_api()

    @app.get("/api/studies/{study_id}/samples")
    def study_samples(study_id: str) -> Dict[str, Any]:
        try:
            samples = search_service.fetch_samples(study_id)
        except UpstreamError as e:
            logger.warning("NCBI samples lookup failed for %s: %s", study_id, e)
            samples = []
        return {"samples": [sample.to_api() for sample in samples]}

    @app.get("/api/studies/{study_id}/files")
    def study_files(study_id: str) -> Dict[str, Any]:
        # E-utilities exposes no file listing.
        return {"files": []}

    @app.post("/api/assistant/chat")
    def assistant_chat(body: ChatRequest) -> Dict[str, Any]:
        message = (body.message or "").strip()
        if not message:
            raise HTTPException(status_code=400, detail="Please enter a message.")

        context: Optional[Study] = None
        if isinstance(body.context_study, dict):
            try:
                context = Study.model_validate(body.context_study)
            except ValueError as e:
                logger.warning("Ignoring malformed context study: %s", e)
        else:
            context = lookup_context(body.context_study)

        return {"response": assistant.chat(message, context), "model": assistant.model_name}

    @app.get("/api/assistant/recommendations")
    def assistant_recommendations(
        study_id: Optional[str] = Query(None, alias="studyId"),
        query: Optional[str] = None,
    ) -> Dict[str, Any]:
        context = lookup_context(study_id)
        return assistant.recommend(query=query, context=context)

    @app.post("/api/export")
    def export_studies(body: ExportRequest) -> Any:
        rows: List[Dict[str, Any]] = list(body.studies)
        for study_id in body.study_ids:
            study = lookup_context(study_id)
            if study is None:
                logger.info("Skipping %s in export: not found", study_id)
                continue
            rows.append(study.to_api())

        columns = body.columns or list(DEFAULT_EXPORT_COLUMNS)
        if body.format == "json":
            return {"data": select_columns(rows, columns), "format": "json"}
        return Response(
            content=to_csv(rows, columns),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
        )

    @app.get("/api/filters/options")
    def filters_options() -> Dict[str, Any]:
        return filter_options()

    return app
