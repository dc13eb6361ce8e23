"""API key resolution — SSM Parameter Store first, configuration fallback second."""
import pytest
from botocore.exceptions import ClientError, ConnectTimeoutError, NoCredentialsError

from quotecache.core.result import ErrorKind
from quotecache.core.secrets import (
    SOURCE_CONFIGURATION,
    SOURCE_PARAMETER_STORE,
    ApiKeyResolver,
    ParameterStore,
)

PARAM = "/WebApiProject/YfApi/ApiKey"


class FakeSsmClient:

    def __init__(self, value: str | None = "ssm-key", exc: Exception | None = None):
        self.value = value
        self.exc = exc
        self.calls: list[dict] = []

    def get_parameter(self, **kwargs):
        self.calls.append(kwargs)
        if self.exc is not None:
            raise self.exc
        return {"Parameter": {"Name": kwargs["Name"], "Value": self.value}}


def _client_error(code: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, "GetParameter")


class TestParameterStore:

    @pytest.mark.asyncio
    async def test_reads_decrypted_value(self):
        client = FakeSsmClient()
        outcome = await ParameterStore("us-east-1", client=client).get_parameter(PARAM)

        assert outcome.value == "ssm-key"
        assert client.calls == [{"Name": PARAM, "WithDecryption": True}]

    @pytest.mark.parametrize("exc,kind", [
        (_client_error("ParameterNotFound"), ErrorKind.NOT_FOUND),
        (_client_error("ValidationException"), ErrorKind.VALIDATION),
        (_client_error("AccessDeniedException"), ErrorKind.CONFIGURATION),
        (ConnectTimeoutError(endpoint_url="https://ssm.us-east-1.amazonaws.com"), ErrorKind.TIMEOUT),
        (NoCredentialsError(), ErrorKind.CONFIGURATION),
    ])
    @pytest.mark.asyncio
    async def test_failure_mapping(self, exc, kind):
        outcome = await ParameterStore("us-east-1", client=FakeSsmClient(exc=exc)).get_parameter(PARAM)
        assert outcome.error.kind == kind

    @pytest.mark.asyncio
    async def test_empty_value_is_not_found(self):
        outcome = await ParameterStore("us-east-1", client=FakeSsmClient(value="")).get_parameter(PARAM)
        assert outcome.error.kind == ErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_blank_name_is_rejected(self):
        client = FakeSsmClient()
        outcome = await ParameterStore("us-east-1", client=client).get_parameter("  ")
        assert outcome.error.kind == ErrorKind.VALIDATION
        assert client.calls == []


class TestApiKeyResolver:

    @pytest.mark.asyncio
    async def test_parameter_store_wins(self):
        store = ParameterStore("us-east-1", client=FakeSsmClient())
        key = (await ApiKeyResolver(PARAM, "config-key", store).resolve()).unwrap()
        assert key.value == "ssm-key"
        assert key.source == SOURCE_PARAMETER_STORE

    @pytest.mark.asyncio
    async def test_falls_back_to_configuration(self):
        store = ParameterStore("us-east-1", client=FakeSsmClient(exc=_client_error("ParameterNotFound")))
        key = (await ApiKeyResolver(PARAM, "config-key", store).resolve()).unwrap()
        assert key.value == "config-key"
        assert key.source == SOURCE_CONFIGURATION

    @pytest.mark.asyncio
    async def test_configuration_only(self):
        key = (await ApiKeyResolver(PARAM, "config-key").resolve()).unwrap()
        assert key.source == SOURCE_CONFIGURATION

    @pytest.mark.asyncio
    async def test_nothing_configured(self):
        outcome = await ApiKeyResolver(PARAM).resolve()
        assert outcome.error.kind == ErrorKind.CONFIGURATION
