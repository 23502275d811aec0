"""HTTP client for fetching pipeline config schemas from the pipeline server.

Uses httpx with configurable timeouts and tenacity for retry with
exponential backoff on 503 (server warming up) and connection errors.
"""

import logging

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from config import settings

logger = logging.getLogger(__name__)

SCHEMAS_PATH = "/api/v1/pipelines/schemas"


class PipelineServerUnavailable(Exception):
    """Pipeline server is temporarily unavailable (retryable — 503, connection error)."""


class PipelineServerError(Exception):
    """Pipeline server returned a non-retryable error or a malformed payload."""


class PipelineSchemaClient:
    """HTTP client for the pipeline server's schema endpoint with retry and backoff."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: int | None = None,
        connect_timeout: int | None = None,
        retry_attempts: int | None = None,
        retry_delay: float | None = None,
        retry_backoff: float | None = None,
    ):
        self._base_url = (base_url or settings.PIPELINE_SERVER_URL).rstrip("/")
        self._retry_attempts = retry_attempts if retry_attempts is not None else settings.PIPELINE_RETRY_ATTEMPTS
        self._retry_delay = retry_delay if retry_delay is not None else settings.PIPELINE_RETRY_DELAY
        self._retry_backoff = retry_backoff if retry_backoff is not None else settings.PIPELINE_RETRY_BACKOFF

        read_timeout = timeout if timeout is not None else settings.PIPELINE_TIMEOUT_SECONDS
        conn_timeout = connect_timeout if connect_timeout is not None else settings.PIPELINE_CONNECT_TIMEOUT

        self._client = httpx.Client(
            base_url=self._base_url,
            timeout=httpx.Timeout(
                connect=float(conn_timeout),
                read=float(read_timeout),
                write=10.0,
                pool=10.0,
            ),
        )

    def close(self):
        self._client.close()

    def get_pipeline_schemas(self) -> dict[str, dict]:
        """Fetch every pipeline's config schema.

        Returns {pipeline_id: config_schema}. Pipelines that publish no
        config schema are skipped.
        Raises PipelineServerUnavailable (retryable) or PipelineServerError.
        """
        data = self._get_with_retry(SCHEMAS_PATH)

        pipelines = data.get("pipelines") if isinstance(data, dict) else None
        if not isinstance(pipelines, dict):
            raise PipelineServerError("Malformed schemas response: missing 'pipelines' object")

        schemas = {}
        for pipeline_id, info in pipelines.items():
            config_schema = info.get("config_schema") if isinstance(info, dict) else None
            if isinstance(config_schema, dict):
                schemas[pipeline_id] = config_schema
            else:
                logger.debug("Pipeline %r publishes no config schema", pipeline_id)

        return schemas

    def get_config_schema(self, pipeline_id: str) -> dict | None:
        """Config schema for one pipeline, or None if the server doesn't know it."""
        return self.get_pipeline_schemas().get(pipeline_id)

    def _get_with_retry(self, path: str):
        """Retry wrapper — configured dynamically based on settings."""

        @retry(
            retry=retry_if_exception_type(PipelineServerUnavailable),
            stop=stop_after_attempt(self._retry_attempts),
            wait=wait_exponential(
                multiplier=self._retry_delay,
                exp_base=self._retry_backoff,
                max=30,
            ),
            reraise=True,
            before_sleep=lambda state: logger.warning(
                "Pipeline server unavailable, retrying in %.1fs (attempt %d/%d)",
                state.next_action.sleep,  # type: ignore[union-attr]
                state.attempt_number,
                self._retry_attempts,
            ),
        )
        def _do_get():
            return self._send_get(path)

        return _do_get()

    def _send_get(self, path: str):
        """Send a single GET request to the pipeline server."""
        try:
            resp = self._client.get(path)
        except (httpx.ConnectError, httpx.ConnectTimeout) as e:
            logger.warning("Pipeline server connection failed: %s", e)
            raise PipelineServerUnavailable(f"Cannot connect to pipeline server: {e}") from e
        except httpx.ReadTimeout as e:
            logger.warning("Pipeline server read timeout: %s", e)
            raise PipelineServerUnavailable(f"Pipeline server read timeout: {e}") from e
        except httpx.HTTPError as e:
            logger.error("Pipeline server HTTP error: %s", e)
            raise PipelineServerError(f"Pipeline server HTTP error: {e}") from e

        if resp.status_code == 503:
            logger.warning("Pipeline server returned 503: %s", _detail(resp, "Service unavailable"))
            raise PipelineServerUnavailable(_detail(resp, "Service unavailable"))

        if resp.status_code != 200:
            detail = _detail(resp, f"HTTP {resp.status_code}")
            logger.error("Pipeline server error %d: %s", resp.status_code, detail)
            raise PipelineServerError(detail)

        try:
            return resp.json()
        except ValueError as e:
            raise PipelineServerError(f"Pipeline server returned invalid JSON: {e}") from e

    def health(self) -> dict:
        """Check pipeline server health. Returns health dict, never raises."""
        try:
            resp = self._client.get("/health", timeout=5.0)
            return resp.json()
        except Exception as e:
            logger.warning("Pipeline server health check failed: %s", e)
            return {"status": "unreachable", "error": str(e)}


def _detail(resp: httpx.Response, fallback: str) -> str:
    try:
        body = resp.json()
    except ValueError:
        return fallback
    if isinstance(body, dict):
        return str(body.get("detail", fallback))
    return fallback
