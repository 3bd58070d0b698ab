"""HTTP REST server for offrecord."""

import logging
import time
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from offrecord import __version__
from offrecord.engine import SecretRedactor
from offrecord.models import RedactionConfig
from offrecord.registry import load_registry, PatternRegistry

logger = logging.getLogger(__name__)

# Prometheus metrics
REQUEST_COUNT = Counter(
    "offrecord_requests_total",
    "Total requests",
    ["endpoint", "status"],
)
REQUEST_DURATION = Histogram(
    "offrecord_request_duration_seconds",
    "Request duration in seconds",
    ["endpoint"],
)
SECRETS_DETECTED = Counter(
    "offrecord_secrets_detected_total",
    "Total detected secrets",
    ["pattern_name"],
)


# Request/Response models
class DetectRequest(BaseModel):
    """Request model for /detect endpoint."""

    text: str


class RedactRequest(BaseModel):
    """Request model for /redact endpoint."""

    text: str


class ValidateRequest(BaseModel):
    """Request model for /validate endpoint."""

    value: str
    pattern_name: str


class DetectedSecretModel(BaseModel):
    pattern_name: str
    start_index: int
    end_index: int
    redacted_value: str


class DetectResponse(BaseModel):
    """Response model for /detect endpoint."""

    found: bool
    count: int
    matches: list[DetectedSecretModel]


class RedactResponse(BaseModel):
    """Response model for /redact endpoint."""

    text: str
    redaction_count: int


class ValidateResponse(BaseModel):
    """Response model for /validate endpoint."""

    valid: bool
    pattern_name: str
    error: Optional[str] = None


class HealthResponse(BaseModel):
    """Response model for /health endpoint."""

    status: str
    version: str
    patterns_loaded: int
    registry_version: int


class ReloadResponse(BaseModel):
    """Response model for /reload endpoint."""

    status: str
    version: int
    patterns_loaded: int
    message: str


class OffrecordServer:
    """Server wrapper for managing state."""

    def __init__(self, config: Optional[dict[str, Any]] = None) -> None:
        """Initialize server with configuration."""
        self.config = config or {}
        self.registry: Optional[PatternRegistry] = None
        self.redactor: Optional[SecretRedactor] = None
        self._load_patterns()

    def _load_patterns(self) -> None:
        """Load rules and build the redactor from configuration."""
        registry_config = self.config.get("registry") or {}
        redaction_config = self.config.get("redaction") or {}
        paths = registry_config.get("paths")

        logger.info(f"Loading rules from: {paths}")
        self.registry = load_registry(
            paths=paths,
            include_defaults=registry_config.get("include_defaults", True),
        )
        self.redactor = SecretRedactor(
            RedactionConfig(
                replacement=redaction_config.get("replacement", "[REDACTED]"),
                include_pattern_name=redaction_config.get("include_pattern_name", False),
            ),
            self.registry,
        )
        logger.info(f"Loaded {len(self.registry)} rules")

    def reload_patterns(self) -> dict[str, Any]:
        """Reload rules from files."""
        try:
            old_size = len(self.registry) if self.registry else 0
            self._load_patterns()
            return {
                "status": "ok",
                "version": self.registry.version if self.registry else 0,
                "patterns_loaded": len(self.registry) if self.registry else 0,
                "message": f"Reloaded successfully ({old_size} -> {len(self.registry)} rules)",
            }
        except Exception as e:
            logger.error(f"Failed to reload rules: {e}")
            raise HTTPException(status_code=500, detail=f"Reload failed: {str(e)}")


def create_app(config: Optional[dict[str, Any]] = None) -> FastAPI:
    """
    Create FastAPI application.

    Args:
        config: Server configuration dictionary

    Returns:
        FastAPI application instance
    """
    app = FastAPI(
        title="offrecord",
        description="Secret detection and redaction service",
        version=__version__,
    )

    server = OffrecordServer(config)

    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next: Any) -> Response:
        """Record metrics for each request."""
        start_time = time.time()
        endpoint = request.url.path

        response = await call_next(request)

        duration = time.time() - start_time
        REQUEST_COUNT.labels(endpoint=endpoint, status=response.status_code).inc()
        REQUEST_DURATION.labels(endpoint=endpoint).observe(duration)

        return response

    @app.post("/detect", response_model=DetectResponse)
    async def detect(request: DetectRequest) -> DetectResponse:
        """Detect secrets in text."""
        if server.redactor is None:
            raise HTTPException(status_code=500, detail="Redactor not initialized")

        try:
            result = server.redactor.detect(request.text)
        except Exception as e:
            logger.error(f"Detect error: {type(e).__name__}")
            raise HTTPException(status_code=500, detail="Detection failed")

        for match in result.matches:
            SECRETS_DETECTED.labels(pattern_name=match.pattern_name).inc()

        return DetectResponse(
            found=result.found,
            count=result.match_count,
            matches=[
                DetectedSecretModel(
                    pattern_name=m.pattern_name,
                    start_index=m.start_index,
                    end_index=m.end_index,
                    redacted_value=m.redacted_value,
                )
                for m in result.matches
            ],
        )

    @app.post("/redact", response_model=RedactResponse)
    async def redact(request: RedactRequest) -> RedactResponse:
        """Redact secrets from text."""
        if server.redactor is None:
            raise HTTPException(status_code=500, detail="Redactor not initialized")

        try:
            result = server.redactor.redact_detailed(request.text)
        except Exception as e:
            logger.error(f"Redact error: {type(e).__name__}")
            raise HTTPException(status_code=500, detail="Redaction failed")

        return RedactResponse(
            text=result.redacted_text,
            redaction_count=result.redaction_count,
        )

    @app.post("/validate", response_model=ValidateResponse)
    async def validate(request: ValidateRequest) -> ValidateResponse:
        """Validate a value against a rule."""
        if server.redactor is None:
            raise HTTPException(status_code=500, detail="Redactor not initialized")

        result = server.redactor.validate_key(request.value, request.pattern_name)
        return ValidateResponse(
            valid=result.valid,
            pattern_name=result.pattern_name,
            error=result.error,
        )

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        """Health check endpoint."""
        if server.registry is None:
            raise HTTPException(status_code=503, detail="Registry not initialized")

        return HealthResponse(
            status="healthy",
            version=__version__,
            patterns_loaded=len(server.registry),
            registry_version=server.registry.version,
        )

    @app.post("/reload", response_model=ReloadResponse)
    async def reload() -> ReloadResponse:
        """Reload rules from files."""
        result = server.reload_patterns()
        return ReloadResponse(**result)

    @app.get("/metrics")
    async def metrics() -> Response:
        """Prometheus metrics endpoint."""
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app
