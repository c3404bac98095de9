"""
AppFlow client.

The only module that talks to the flow engine. Each call has bounded
timeouts, transient failures are retried with backoff, and every failure
that survives the retries surfaces as ExternalServiceError.
"""

from typing import Any, Dict, List, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from flowsync.core.config import Settings
from flowsync.core.exceptions import ExternalServiceError
from flowsync.core.logging import get_logger
from flowsync.core.retry import call_with_retry

logger = get_logger(__name__)

TRANSIENT_ERROR_CODES = frozenset(
    {
        "Throttling",
        "ThrottlingException",
        "TooManyRequestsException",
        "RequestLimitExceeded",
        "InternalServerException",
        "ServiceUnavailable",
        "ServiceUnavailableException",
    }
)

TRANSIENT_BOTOCORE_ERRORS = (
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)


def is_transient_error(exc: BaseException) -> bool:
    """True for throttling, 5xx responses and network-level failures."""
    if isinstance(exc, TRANSIENT_BOTOCORE_ERRORS):
        return True
    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        if error.get("Code") in TRANSIENT_ERROR_CODES:
            return True
        status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)
        return status >= 500
    return False


def build_boto3_client(settings: Settings) -> Any:
    """Create the boto3 AppFlow client with bounded timeouts."""
    config = Config(
        region_name=settings.aws_region,
        connect_timeout=settings.appflow_connect_timeout,
        read_timeout=settings.appflow_read_timeout,
        # retries are handled by call_with_retry
        retries={"total_max_attempts": 1, "mode": "standard"},
    )
    return boto3.client("appflow", config=config)


class AppFlowClient:
    """
    Semantic operations on the flow engine.

    Args:
        settings: Service settings (timeouts, retry policy, page size)
        client: Optional pre-built boto3 client, used by tests
    """

    def __init__(self, settings: Settings, client: Optional[Any] = None):
        self._settings = settings
        self._client = client if client is not None else build_boto3_client(settings)

    def _call(self, operation: str, **params: Any) -> Dict[str, Any]:
        method = getattr(self._client, operation)
        try:
            return call_with_retry(
                method,
                operation=operation,
                is_transient=is_transient_error,
                max_attempts=self._settings.appflow_max_attempts,
                backoff_seconds=self._settings.appflow_backoff_seconds,
                **params,
            )
        except ClientError as e:
            error = e.response.get("Error", {})
            code = error.get("Code")
            logger.error(
                "AppFlow call failed",
                operation=operation,
                error_code=code,
                error=error.get("Message"),
            )
            raise ExternalServiceError(
                f"AppFlow {operation} failed: {code}",
                operation=operation,
                error_code=code,
                details={"engine_message": error.get("Message")},
            ) from e
        except BotoCoreError as e:
            logger.error("AppFlow call failed", operation=operation, error=str(e))
            raise ExternalServiceError(
                f"AppFlow {operation} failed: {e.__class__.__name__}",
                operation=operation,
                details={"engine_message": str(e)},
            ) from e

    def describe_flow(self, flow_name: str) -> Dict[str, Any]:
        """Read the full flow definition, including flowStatus."""
        return self._call("describe_flow", flowName=flow_name)

    def get_flow_status(self, flow_name: str) -> str:
        """Read the flow's current overall status."""
        return self.describe_flow(flow_name)["flowStatus"]

    def update_flow(self, definition: Dict[str, Any]) -> str:
        """Replace a flow definition. Returns the resulting flowStatus."""
        response = self._call("update_flow", **definition)
        return response.get("flowStatus", "")

    def describe_connector_entity(
        self,
        entity_name: str,
        connector_type: Optional[str] = None,
        connector_profile_name: Optional[str] = None,
        api_version: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Return the entity's field descriptors."""
        params: Dict[str, Any] = {"connectorEntityName": entity_name}
        if connector_type:
            params["connectorType"] = connector_type
        if connector_profile_name:
            params["connectorProfileName"] = connector_profile_name
        if api_version:
            params["apiVersion"] = api_version
        response = self._call("describe_connector_entity", **params)
        return list(response.get("connectorEntityFields", []))

    def list_flow_executions(self, flow_name: str) -> List[Dict[str, Any]]:
        """Return every execution record of a flow, following nextToken."""
        executions: List[Dict[str, Any]] = []
        params: Dict[str, Any] = {
            "flowName": flow_name,
            "maxResults": self._settings.execution_page_size,
        }
        while True:
            response = self._call("describe_flow_execution_records", **params)
            executions.extend(response.get("flowExecutions", []))
            next_token = response.get("nextToken")
            if not next_token:
                break
            params["nextToken"] = next_token
        return executions
