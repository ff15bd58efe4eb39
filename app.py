"""
app.py - FastAPI application serving the NLP commands
"""
import asyncio
import contextvars
from contextlib import asynccontextmanager
from datetime import datetime
from functools import partial
from typing import Optional, List, Dict, Any

from fastapi import FastAPI, HTTPException, Request, Query, Response, status, Depends
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

# Rate limiting
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

# Prometheus metrics
from prometheus_client import CONTENT_TYPE_LATEST

from config import settings
from logger import get_logger
from metrics import track_request, get_metrics
from middleware import BodySizeLimitMiddleware, RequestIDMiddleware
from nlp_server import (
    NLPServerError,
    ResourceRegistry,
    ResponseAssembler,
    ResponseFormat,
    Tokenize,
    Parse,
    ExtractFrames,
    Label,
    FindLocations,
    to_json_string,
)
from nlp_server.config_loader import build_registry, load_resources_config
from nlp_server.models import CandidateEntity

logger = get_logger(__name__)

# Handlers of the package loggers (children propagate to it)
get_logger("nlp_server")

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[f"{settings.get('rate_limit_per_minute', 600)} per minute"]
)


class NLPServer:
    """The pipeline commands sharing one resource registry"""

    def __init__(self, registry: ResourceRegistry, frame_extractor_workers: int = 1):
        self.registry = registry
        self.tokenize = Tokenize(registry)
        self.parse = Parse(registry)
        self.extract_frames = ExtractFrames(registry, workers=frame_extractor_workers)
        self.label = Label(registry, workers=frame_extractor_workers)
        self.find_locations = FindLocations(registry)
        self.assembler = ResponseAssembler()

    def close(self):
        self.extract_frames.close()
        self.label.close()


def load_server() -> NLPServer:
    """Build the server from the resources configuration named in the settings"""
    config = load_resources_config(settings.get('resources_config'))
    registry = build_registry(
        config,
        strict=settings.get('strict_resources', False),
        enable_language_detector=settings.get('enable_language_detector', True)
    )
    return NLPServer(registry, frame_extractor_workers=settings.get('frame_extractor_workers', 1))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: resources are loaded once, before serving"""
    try:
        if app.state.nlp is None:
            loop = asyncio.get_running_loop()
            app.state.nlp = await loop.run_in_executor(None, load_server)
        logger.info(
            f"Application {settings.get('app_name')} v{settings.get('version')} "
            f"started in {settings.get('environment')} mode"
        )
    except Exception as e:
        logger.critical(f"Startup failed: {e}")
        raise

    yield

    logger.info("Application shutting down gracefully...")
    if app.state.nlp is not None:
        app.state.nlp.close()
    logger.info("Shutdown complete")


# Request/Response Models
class CandidateModel(BaseModel):
    name: str = Field(..., min_length=1)
    score: float


class LocationsRequest(BaseModel):
    text: str
    candidates: List[CandidateModel] = Field(default_factory=list)


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: str
    environment: str
    services: Dict[str, str]


def create_error_response(status_code: int, content: Dict[str, Any], request_id: str = None) -> JSONResponse:
    """Create standardized error response"""
    if request_id:
        content["request_id"] = request_id
    return JSONResponse(status_code=status_code, content=content)


def get_server(request: Request) -> NLPServer:
    server = request.app.state.nlp
    if server is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Resources not loaded")
    return server


def check_length(text: str) -> str:
    max_length = settings.get('max_text_length', 100000)
    if len(text) > max_length:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Text exceeds the maximum length of {max_length} characters"
        )
    return text


async def read_text(request: Request) -> str:
    body = await request.body()
    try:
        return check_length(body.decode("utf-8"))
    except UnicodeDecodeError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="The body must be UTF-8 text")


async def run_command(func, *args, **kwargs):
    """Run a command on a worker thread: commands are CPU-bound and synchronous"""
    loop = asyncio.get_running_loop()
    # The copied context carries the request id into the command logs
    context = contextvars.copy_context()
    return await loop.run_in_executor(None, partial(context.run, func, *args, **kwargs))


def json_response(data: Any, pretty: Optional[bool]) -> Response:
    if pretty is None:
        pretty = settings.get('pretty_print_default', False)
    return Response(content=to_json_string(data, pretty=pretty), media_type="application/json")


def register_routes(app: FastAPI):
    """Define the paths handled"""

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    async def health_check(request: Request):
        """Health check endpoint"""
        server = request.app.state.nlp
        services = {
            "registry": "loaded" if server is not None else "missing",
            "language_detector": (
                "available" if server is not None and server.registry.language_detector is not None
                else "unavailable"
            ),
        }
        return HealthResponse(
            status="healthy" if server is not None else "unhealthy",
            version=settings.version,
            environment=settings.environment,
            timestamp=datetime.utcnow().isoformat(),
            services=services
        )

    @app.get("/metrics", tags=["System"])
    async def metrics():
        """Prometheus metrics endpoint"""
        if not settings.enable_metrics:
            raise HTTPException(status_code=404)
        return Response(content=get_metrics(), media_type=CONTENT_TYPE_LATEST)

    @app.get("/languages", tags=["Configuration"])
    async def languages(server: NLPServer = Depends(get_server)):
        """Languages supported by each operation and frame extractor domains"""
        return server.registry.describe()

    @app.get("/tokenize", tags=["Tokenize"])
    @app.get("/tokenize/{lang}", tags=["Tokenize"])
    @track_request("GET", "/tokenize")
    async def tokenize_query(
        text: str = Query(...),
        lang: Optional[str] = None,
        pretty: Optional[bool] = None,
        server: NLPServer = Depends(get_server)
    ):
        """Tokenize the text given in the query"""
        result = await run_command(server.tokenize.run, check_length(text), language=lang)
        return json_response(server.assembler.tokenized(result), pretty)

    @app.post("/tokenize", tags=["Tokenize"])
    @app.post("/tokenize/{lang}", tags=["Tokenize"])
    @track_request("POST", "/tokenize")
    async def tokenize_body(
        request: Request,
        lang: Optional[str] = None,
        pretty: Optional[bool] = None,
        server: NLPServer = Depends(get_server)
    ):
        """Tokenize the text given in the body"""
        result = await run_command(server.tokenize.run, await read_text(request), language=lang)
        return json_response(server.assembler.tokenized(result), pretty)

    @app.post("/parse", tags=["Parse"])
    @app.post("/parse/{lang}", tags=["Parse"])
    @track_request("POST", "/parse")
    async def parse(
        request: Request,
        lang: Optional[str] = None,
        response_format: ResponseFormat = Query(ResponseFormat.JSON, alias="format"),
        pretty: Optional[bool] = None,
        server: NLPServer = Depends(get_server)
    ):
        """Parse the text given in the body, in JSON or CoNLL format"""
        result = await run_command(server.parse.run, await read_text(request), language=lang)

        if response_format == ResponseFormat.CONLL:
            return PlainTextResponse(server.assembler.parsed_conll(result))

        return json_response(server.assembler.parsed(result), pretty)

    @app.post("/extract-frames", tags=["Frames"])
    @app.post("/extract-frames/{lang}", tags=["Frames"])
    @track_request("POST", "/extract-frames")
    async def extract_frames(
        request: Request,
        lang: Optional[str] = None,
        domain: Optional[str] = None,
        distribution: bool = False,
        pretty: Optional[bool] = None,
        server: NLPServer = Depends(get_server)
    ):
        """Extract the frames of the text given in the body, for one domain or for all"""
        result = await run_command(
            server.extract_frames.run,
            await read_text(request),
            language=lang,
            domain=domain,
            distribution=distribution
        )
        return json_response(server.assembler.frames(result), pretty)

    @app.post("/label", tags=["Frames"])
    @app.post("/label/{lang}", tags=["Frames"])
    @track_request("POST", "/label")
    async def label(
        request: Request,
        lang: Optional[str] = None,
        domain: Optional[str] = None,
        pretty: Optional[bool] = None,
        server: NLPServer = Depends(get_server)
    ):
        """Label the tokens of the text given in the body, for one domain or for all"""
        result = await run_command(server.label.run, await read_text(request), language=lang, domain=domain)
        return json_response(server.assembler.labelings(result), pretty)

    @app.post("/locations", tags=["Locations"])
    @app.post("/locations/{lang}", tags=["Locations"])
    @track_request("POST", "/locations")
    async def locations(
        body: LocationsRequest,
        lang: Optional[str] = None,
        pretty: Optional[bool] = None,
        server: NLPServer = Depends(get_server)
    ):
        """Find the locations mentioned in a text, biased by candidate entities"""
        candidates = [CandidateEntity(name=c.name, score=c.score) for c in body.candidates]
        result = await run_command(
            server.find_locations.run,
            check_length(body.text),
            candidates=candidates,
            language=lang
        )
        dictionary = server.registry.locations_dictionary(result.language)
        return json_response(server.assembler.locations(result, dictionary), pretty)


def register_error_handlers(app: FastAPI):
    """Error handlers with proper sanitization"""

    @app.exception_handler(NLPServerError)
    async def nlp_error_handler(request: Request, exc: NLPServerError):
        request_id = getattr(request.state, "request_id", "unknown")
        if exc.status_code >= 500:
            logger.error(f"Configuration error in request {request_id}: {exc}")
        else:
            logger.warning(f"Rejected request {request_id}: {exc}")
        return create_error_response(exc.status_code, exc.to_dict(), request_id)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        request_id = getattr(request.state, "request_id", "unknown")
        logger.error(f"Unhandled exception in request {request_id}: {str(exc)}",
                     exc_info=settings.debug)
        return create_error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            {"error": "InternalError",
             "detail": str(exc) if settings.debug else "An unexpected error occurred"},
            request_id
        )


def create_app(server: Optional[NLPServer] = None) -> FastAPI:
    """
    Create the application.

    Args:
        server: Commands to serve; loaded from the resources configuration at
            startup when None
    """
    app = FastAPI(
        title=settings.get('app_name'),
        version=settings.get('version'),
        lifespan=lifespan,
        docs_url="/api/docs" if settings.get('debug') else None,
        redoc_url="/api/redoc" if settings.get('debug') else None,
        openapi_url="/openapi.json" if settings.get('debug') else None
    )
    app.state.nlp = server

    app.add_middleware(BodySizeLimitMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get('cors_origins', []),
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Process-Time"]
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    register_routes(app)
    register_error_handlers(app)
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    log_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            },
        },
        "handlers": {
            "default": {
                "formatter": "default",
                "class": "logging.StreamHandler",
            },
        },
        "root": {
            "level": settings.log_level,
            "handlers": ["default"],
        },
    }

    uvicorn.run(
        "app:app",
        host=settings.host,
        port=settings.port,
        workers=settings.workers if settings.environment == "production" else 1,
        log_config=log_config,
        reload=(settings.environment == "development"),
    )
