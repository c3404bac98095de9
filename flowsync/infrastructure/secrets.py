"""
Database credential resolution from AWS Secrets Manager.

Runs once at startup. Any failure is a ConfigurationError: the process
must not come up with an unusable database dependency.
"""

import json
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from sqlalchemy.engine import URL

from flowsync.core.exceptions import ConfigurationError
from flowsync.core.logging import get_logger

logger = get_logger(__name__)

REQUIRED_SECRET_KEYS = ("username", "password", "host")


def load_database_url(
    secret_id: str, region: str, client: Optional[Any] = None
) -> str:
    """
    Build a PostgreSQL URL from an RDS-style secret.

    The secret string is JSON with username, password, host and optionally
    port and dbname.
    """
    client = client if client is not None else boto3.client(
        "secretsmanager", region_name=region
    )
    try:
        response = client.get_secret_value(SecretId=secret_id)
    except (BotoCoreError, ClientError) as e:
        logger.error("Database secret unavailable", secret_id=secret_id, error=str(e))
        raise ConfigurationError(
            "Database secret unavailable", details={"secret_id": secret_id}
        ) from e

    try:
        secret = json.loads(response["SecretString"])
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigurationError(
            "Database secret is not a JSON string", details={"secret_id": secret_id}
        ) from e

    missing = [key for key in REQUIRED_SECRET_KEYS if not secret.get(key)]
    if missing:
        raise ConfigurationError(
            "Database secret is incomplete",
            details={"secret_id": secret_id, "missing": missing},
        )

    url = URL.create(
        "postgresql+psycopg2",
        username=secret["username"],
        password=secret["password"],
        host=secret["host"],
        port=int(secret.get("port") or 5432),
        database=secret.get("dbname") or "postgres",
    )
    logger.info("Database credentials loaded from secret", secret_id=secret_id)
    return url.render_as_string(hide_password=False)
