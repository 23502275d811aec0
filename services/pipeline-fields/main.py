"""FastAPI pipeline fields service — custom field descriptors for generic UI.

Turns pipeline config schemas into typed field descriptors, skipping the
parameters that already have dedicated controls. Schemas come either in the
request body or from the pipeline server.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from config import settings
from controls import validate_values
from extraction import build_exclusion_set, extract_custom_fields
from models import (
    CustomFieldsRequest,
    CustomFieldsResponse,
    FieldValidationRequest,
    FieldValidationResponse,
)
from schema_client import PipelineSchemaClient, PipelineServerError, PipelineServerUnavailable

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

_schema_client: PipelineSchemaClient | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize the pipeline server client on startup if configured."""
    global _schema_client

    if not settings.PIPELINE_SERVER_URL:
        logger.info("Pipeline server not configured (PIPELINE_SERVER_URL is empty) — schema fetching disabled")
    else:
        logger.info("Using pipeline server at %s", settings.PIPELINE_SERVER_URL)
        _schema_client = PipelineSchemaClient()

    yield

    if _schema_client is not None:
        _schema_client.close()
        _schema_client = None


app = FastAPI(title="Pipeline Fields", version="1.0.0", lifespan=lifespan)


def _exclusions(request_fields: list[str]) -> list[str]:
    return [*settings.EXTRA_EXCLUDED_FIELDS, *request_fields]


@app.post("/api/v1/fields", response_model=CustomFieldsResponse)
async def custom_fields(request: CustomFieldsRequest):
    """Extract custom field descriptors from a config schema."""
    exclude = _exclusions(request.exclude_fields)
    fields = extract_custom_fields(request.config_schema, exclude)
    return CustomFieldsResponse(
        fields=fields,
        excluded=sorted(build_exclusion_set(exclude)),
    )


@app.post("/api/v1/fields/validate", response_model=FieldValidationResponse)
async def validate_fields(request: FieldValidationRequest):
    """Bound-check values against the numeric fields of a config schema."""
    fields = extract_custom_fields(request.config_schema, _exclusions(request.exclude_fields))
    errors = validate_values(fields, request.values)
    return FieldValidationResponse(valid=not errors, errors=errors)


@app.get("/api/v1/pipelines/{pipeline_id}/fields", response_model=CustomFieldsResponse)
def pipeline_fields(pipeline_id: str):
    """Fetch a pipeline's config schema from the pipeline server and extract its fields."""
    if _schema_client is None:
        return JSONResponse(
            status_code=503,
            content={"detail": "Pipeline schema fetching is not available - no pipeline server configured"},
        )

    try:
        config_schema = _schema_client.get_config_schema(pipeline_id)
    except PipelineServerUnavailable as e:
        logger.error("Pipeline server unavailable after retries: %s", e)
        return JSONResponse(
            status_code=503,
            content={"detail": f"Pipeline server unavailable: {e}"},
        )
    except PipelineServerError as e:
        logger.error("Pipeline server error: %s", e)
        return JSONResponse(
            status_code=502,
            content={"detail": f"Pipeline server error: {e}"},
        )

    if config_schema is None:
        return JSONResponse(
            status_code=404,
            content={"detail": f"Unknown pipeline: {pipeline_id}"},
        )

    exclude = _exclusions([])
    return CustomFieldsResponse(
        fields=extract_custom_fields(config_schema, exclude),
        excluded=sorted(build_exclusion_set(exclude)),
    )


@app.get("/health")
async def health():
    """Return service status and pipeline server reachability."""
    base = {
        "status": "healthy",
        "pipeline_server_configured": _schema_client is not None,
    }

    if _schema_client is not None:
        base["pipeline_server_health"] = _schema_client.health()

    return base


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
