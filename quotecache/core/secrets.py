"""Upstream API key resolution — AWS SSM Parameter Store first, static configuration second."""
import asyncio
from dataclasses import dataclass

import boto3
import structlog
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError, ConnectTimeoutError, ReadTimeoutError

from quotecache.core.result import (
    Error,
    ErrorKind,
    Outcome,
    missing_api_key,
    not_found,
    timeout,
    validation_invalid,
    validation_required,
)

logger = structlog.get_logger()

SOURCE_PARAMETER_STORE = "AWS Parameter Store"
SOURCE_CONFIGURATION = "Configuration Fallback"


@dataclass(frozen=True)
class ApiKey:
    value: str
    source: str


class ParameterStore:
    """Thin async wrapper over the SSM GetParameter call."""

    def __init__(self, region_name: str, client=None):
        self._region_name = region_name
        self._client = client

    def _get_client(self):
        if self._client is None:
            self._client = boto3.client(
                "ssm",
                config=Config(
                    region_name=self._region_name,
                    retries={"max_attempts": 3},
                    connect_timeout=5,
                    read_timeout=5,
                ),
            )
        return self._client

    async def get_parameter(self, name: str) -> Outcome[str]:
        if not name or not name.strip():
            return Outcome.failure(validation_required("parameter_name"))
        try:
            response = await asyncio.to_thread(
                self._get_client().get_parameter, Name=name, WithDecryption=True
            )
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            if code == "ParameterNotFound":
                logger.warning("secrets.not_found", parameter=name)
                return Outcome.failure(not_found("Parameter", name))
            if code in ("ValidationException", "InvalidParameter"):
                logger.error("secrets.invalid_parameter", parameter=name, code=code)
                return Outcome.failure(validation_invalid("parameter_name", name))
            logger.error("secrets.lookup_failed", parameter=name, code=code, error=str(e))
            return Outcome.failure(Error(ErrorKind.CONFIGURATION, f"Parameter lookup failed: {code or e}"))
        except (ConnectTimeoutError, ReadTimeoutError):
            logger.error("secrets.timeout", parameter=name)
            return Outcome.failure(timeout())
        except BotoCoreError as e:
            logger.error("secrets.lookup_failed", parameter=name, error=str(e))
            return Outcome.failure(Error(ErrorKind.CONFIGURATION, f"Parameter lookup failed: {e}"))

        value = (response.get("Parameter") or {}).get("Value")
        if not value:
            logger.warning("secrets.empty_parameter", parameter=name)
            return Outcome.failure(not_found("Parameter", name))
        return Outcome.success(value)


class ApiKeyResolver:

    def __init__(self, parameter_name: str, fallback_key: str = "", parameter_store: ParameterStore | None = None):
        self.parameter_name = parameter_name
        self._fallback_key = fallback_key
        self._store = parameter_store

    async def resolve(self) -> Outcome[ApiKey]:
        if self._store is not None:
            result = await self._store.get_parameter(self.parameter_name)
            if result.is_success:
                return Outcome.success(ApiKey(result.value, SOURCE_PARAMETER_STORE))
        if self._fallback_key:
            return Outcome.success(ApiKey(self._fallback_key, SOURCE_CONFIGURATION))
        logger.warning("secrets.no_api_key", parameter=self.parameter_name)
        return Outcome.failure(missing_api_key())
