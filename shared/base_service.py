"""
Base service class for the odds proxy.
"""

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from typing import Dict, Any, Optional
import time

from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.exceptions import HTTPException as StarletteHTTPException

from shared.config import ServiceConfig, get_config
from shared.logging import configure_logging, get_logger, set_request_id, clear_context
from shared.metrics import get_metrics_collector
from shared.errors import ProxyError, ErrorResponse


class BaseService:
    """Base service class with common functionality."""

    def __init__(self, service_name: str, port: Optional[int] = None,
                 config: Optional[ServiceConfig] = None):
        self.service_name = service_name
        self.config = config if config is not None else get_config(service_name, port)
        self.port = self.config.port
        self.logger = get_logger(f"{service_name}.service")
        self.metrics = get_metrics_collector(service_name)
        self._start_time = time.monotonic()

        configure_logging(service_name, self.config.log_level)

        self.app = self._create_app()
        self._setup_middleware()
        self._setup_routes()

    def _create_app(self) -> FastAPI:
        """Create FastAPI application."""
        return FastAPI(
            title=f"{self.service_name.title()} Service",
            description=f"Virtual football odds {self.service_name} service",
            version="1.0.0",
            docs_url="/docs" if self.config.env == "local" else None,
            redoc_url="/redoc" if self.config.env == "local" else None,
        )

    def _setup_middleware(self):
        """Set up middleware."""

        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=self.config.cors_origins,
            allow_credentials=False,
            allow_methods=["GET"],
            allow_headers=["*"],
            expose_headers=["X-Cache", "Retry-After", "X-Request-ID"],
        )

        @self.app.middleware("http")
        async def add_request_timing(request: Request, call_next):
            request_id = set_request_id(request.headers.get("X-Request-ID"))
            start_time = time.time()
            response = None

            try:
                response = await call_next(request)
                response.headers["X-Request-ID"] = request_id
                return response
            finally:
                duration = time.time() - start_time
                status_code = response.status_code if response is not None else 500

                self.metrics.record_http_request(
                    method=request.method,
                    endpoint=self._route_template(request),
                    status_code=status_code,
                    duration=duration
                )

                self.logger.info(
                    "HTTP request",
                    method=request.method,
                    path=request.url.path,
                    status_code=status_code,
                    cache=response.headers.get("X-Cache") if response is not None else None,
                    duration_ms=round(duration * 1000, 2)
                )
                clear_context()

    @staticmethod
    def _route_template(request: Request) -> str:
        """Matched route path (``/items/{id}``), so metric labels stay bounded."""
        route = request.scope.get("route")
        return getattr(route, "path", None) or request.url.path

    def _setup_routes(self):
        """Set up common routes."""

        @self.app.get("/health")
        async def health_check():
            """Health check endpoint."""
            try:
                details = await self._health_details()
                self.metrics.record_health_check("ok")

                return {
                    "service": self.service_name,
                    "status": "healthy",
                    "uptime": round(self._get_uptime(), 3),
                    **details,
                }
            except Exception as e:
                self.logger.error("Health check failed", error=str(e))
                self.metrics.record_health_check("error")
                return JSONResponse(
                    status_code=503,
                    content={
                        "service": self.service_name,
                        "status": "error",
                        "error": str(e)
                    }
                )

        @self.app.get("/metrics")
        async def metrics_endpoint():
            """Prometheus metrics endpoint."""
            return Response(
                content=generate_latest(self.metrics.registry),
                media_type=CONTENT_TYPE_LATEST
            )

        @self.app.exception_handler(ProxyError)
        async def proxy_exception_handler(request: Request, exc: ProxyError):
            """Handle ProxyError."""
            self.logger.warning(
                "Proxy error",
                code=exc.code,
                message=exc.message,
                details=exc.details
            )
            self.metrics.record_error(exc.code)
            return JSONResponse(
                status_code=exc.status_code,
                content=exc.to_response().to_content()
            )

        @self.app.exception_handler(StarletteHTTPException)
        async def http_exception_handler(request: Request, exc: StarletteHTTPException):
            """Render framework HTTP errors (404, 405) in the caller-facing shape."""
            return JSONResponse(
                status_code=exc.status_code,
                content=ErrorResponse(error=str(exc.detail)).to_content(),
                headers=getattr(exc, "headers", None)
            )

        @self.app.exception_handler(RequestValidationError)
        async def validation_exception_handler(request: Request, exc: RequestValidationError):
            """Handle malformed inbound parameters."""
            return JSONResponse(
                status_code=422,
                content=ErrorResponse(error="Invalid request", details=str(exc.errors())).to_content()
            )

        @self.app.exception_handler(Exception)
        async def general_exception_handler(request: Request, exc: Exception):
            """Handle general exceptions."""
            self.logger.error("Unhandled exception", error=str(exc), exc_info=True)
            self.metrics.record_error("INTERNAL_ERROR")
            return JSONResponse(
                status_code=500,
                content=ErrorResponse(error="Internal error", details=str(exc)).to_content()
            )

    async def _health_details(self) -> Dict[str, Any]:
        """Extra health fields. Override in subclasses."""
        return {}

    def _get_uptime(self) -> float:
        """Get service uptime in seconds."""
        return time.monotonic() - self._start_time

    def run(self):
        """Run the service."""
        import uvicorn
        uvicorn.run(
            self.app,
            host=self.config.host,
            port=self.config.port,
            log_level=self.config.log_level.lower()
        )
