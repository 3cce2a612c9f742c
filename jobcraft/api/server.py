"""FastAPI server for the AI aggregation layer.

Provides HTTP endpoints for:
- POST /api/ai/generate - Text generation under a strategy
- POST /api/ai/embedding - Averaged embedding
- POST /api/ai/analyze-image - Multi-provider image analysis
- GET /api/ai/providers - Available providers
- POST /api/ai/cover-letter - Cover letter generation
- POST /api/ai/optimize-resume - ATS resume optimization
- GET /metrics - Prometheus metrics in text format

Aggregation failures are data, not transport errors: they are returned
with HTTP 200 and the ``{error: true, message}`` payload. Invalid request
bodies return 422 with per-field messages.

Usage:
    from jobcraft.api.server import run_server
    run_server(AIAggregator.from_config(config), port=8000)
"""

from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse

from jobcraft import __version__
from jobcraft.api.schemas import (
    AnalyzeImageRequest,
    CoverLetterRequest,
    EmbeddingRequest,
    GenerateRequest,
    OptimizeResumeRequest,
)
from jobcraft.models.application import JobDetails
from jobcraft.observability.context import correlation_id_context
from jobcraft.observability.logging import get_logger
from jobcraft.observability.metrics import get_metrics_content_type, get_metrics_text
from jobcraft.services.ai.aggregator import AIAggregator
from jobcraft.services.application_service import ApplicationMaterialsService

logger = get_logger("api")

CORRELATION_HEADER = "X-Correlation-ID"


def _field_messages(exc: RequestValidationError) -> Dict[str, List[str]]:
    """Group validation messages by dotted field path."""
    messages: Dict[str, List[str]] = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        field = ".".join(loc) or "body"
        messages.setdefault(field, []).append(str(error.get("msg", "Invalid value")))
    return messages


def create_app(
    aggregator: AIAggregator,
    application_service: Optional[ApplicationMaterialsService] = None,
    title: str = "Jobcraft AI API",
) -> FastAPI:
    """Create FastAPI application with the AI endpoints.

    Args:
        aggregator: Aggregator serving every request
        application_service: Cover letter / resume service (built from the
            aggregator when omitted)
        title: API title

    Returns:
        Configured FastAPI application
    """
    service = application_service or ApplicationMaterialsService(aggregator)

    app = FastAPI(
        title=title,
        version=__version__,
        description="Multi-provider AI generation for job applications",
    )

    @app.middleware("http")
    async def bind_correlation_id(request: Request, call_next: Any) -> Response:
        with correlation_id_context(request.headers.get(CORRELATION_HEADER)) as corr_id:
            response: Response = await call_next(request)
            response.headers[CORRELATION_HEADER] = corr_id
            return response

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        messages = _field_messages(exc)
        logger.info(
            "request_validation_failed", path=request.url.path, fields=list(messages)
        )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"error": True, "messages": messages},
        )

    @app.post("/api/ai/generate", summary="Generate text")
    async def generate(body: GenerateRequest) -> Dict[str, Any]:
        result = await aggregator.generate_text(body.prompt, body.to_options())
        return result.to_dict()

    @app.post("/api/ai/embedding", summary="Averaged embedding")
    async def embedding(body: EmbeddingRequest) -> Dict[str, Any]:
        result = await aggregator.generate_embedding(body.text)
        return result.to_dict()

    @app.post("/api/ai/analyze-image", summary="Analyze image")
    async def analyze_image(body: AnalyzeImageRequest) -> Dict[str, Any]:
        result = await aggregator.analyze_image(body.image, body.prompt)
        return result.to_dict()

    @app.get("/api/ai/providers", summary="Available providers")
    async def providers() -> Dict[str, Any]:
        available = aggregator.get_available_providers()
        return {"providers": available, "count": len(available)}

    @app.post("/api/ai/cover-letter", summary="Generate cover letter")
    async def cover_letter(body: CoverLetterRequest) -> Dict[str, Any]:
        job = JobDetails(
            job_title=body.job_title,
            company_name=body.company_name,
            job_description=body.job_description,
        )
        return await service.generate_cover_letter(
            job, body.user_skills, body.user_experience, body.tone
        )

    @app.post("/api/ai/optimize-resume", summary="Optimize resume for ATS")
    async def optimize_resume(body: OptimizeResumeRequest) -> Dict[str, Any]:
        return await service.optimize_resume(
            body.resume_content, body.job_description, body.optimization_type
        )

    @app.get(
        "/metrics",
        response_class=PlainTextResponse,
        summary="Prometheus metrics",
    )
    async def prometheus_metrics() -> Response:
        return Response(content=get_metrics_text(), media_type=get_metrics_content_type())

    return app


def run_server(  # pragma: no cover
    aggregator: AIAggregator,
    host: str = "0.0.0.0",
    port: int = 8000,
    log_level: str = "info",
) -> None:
    """Run the API server (blocking)."""
    import uvicorn

    app = create_app(aggregator)
    logger.info("api_server_starting", host=host, port=port)
    uvicorn.run(app, host=host, port=port, log_level=log_level)
