import pytest

from ipquery.api.ip import IP
from ipquery.cache.store import MemoryCacheStore
from ipquery.client import Client
from ipquery.errors import InvalidInputError
from ipquery.http_client.builder import Builder
from ipquery.models.request_models import ResponseFormat
from ipquery.util import MAX_AMOUNT_OF_IPS
from tests.common import RecordingTransport, make_http_client


def _api(transport: RecordingTransport) -> IP:
    return IP(Client.create_with_http_client(make_http_client(transport)))


@pytest.mark.asyncio
async def test_fetch_single_ip_returns_raw_body() -> None:
    body = '{"ip":"8.8.8.8","isp":{"asn":"AS15169"}}'
    transport = RecordingTransport(text=body)

    result = await _api(transport).fetch("8.8.8.8")

    assert result == body
    assert len(transport.requests) == 1
    request = transport.requests[0]
    assert request.method == "GET"
    assert request.url.path == "/8.8.8.8"
    assert request.url.params["format"] == "json"


@pytest.mark.asyncio
async def test_fetch_list_joins_ips_in_order() -> None:
    transport = RecordingTransport()
    ips = ["8.8.8.8", "2001:4860:4860::8888", "1.1.1.1"]

    await _api(transport).fetch(ips, "yaml")

    assert transport.requests[0].url.path == "/8.8.8.8,2001:4860:4860::8888,1.1.1.1"
    assert transport.requests[0].url.params["format"] == "yaml"


@pytest.mark.asyncio
async def test_fetch_csv_string() -> None:
    transport = RecordingTransport(text="<ip>...</ip>")

    result = await _api(transport).fetch("8.8.8.8,1.1.1.1", format=ResponseFormat.xml)

    assert result == "<ip>...</ip>"
    assert transport.requests[0].url.path == "/8.8.8.8,1.1.1.1"
    assert transport.requests[0].url.params["format"] == "xml"


@pytest.mark.asyncio
@pytest.mark.parametrize("ips", ["256.256.256.256", "", "not-an-ip", ["8.8.8.8", "not-an-ip"], "8.8.8.8,"])
async def test_fetch_invalid_ip_makes_no_request(ips) -> None:
    transport = RecordingTransport()

    with pytest.raises(InvalidInputError, match="Invalid IP address"):
        await _api(transport).fetch(ips)

    assert transport.requests == []


@pytest.mark.asyncio
async def test_fetch_too_many_ips_makes_no_request() -> None:
    transport = RecordingTransport()

    with pytest.raises(InvalidInputError, match="Too many IP addresses"):
        await _api(transport).fetch(["8.8.8.8"] * (MAX_AMOUNT_OF_IPS + 1))

    assert transport.requests == []


@pytest.mark.asyncio
@pytest.mark.parametrize("ips", ["8.8.8.8", "not-an-ip"])
async def test_fetch_invalid_format_makes_no_request(ips: str) -> None:
    transport = RecordingTransport()

    with pytest.raises(InvalidInputError):
        await _api(transport).fetch(ips, "toml")

    assert transport.requests == []


@pytest.mark.asyncio
async def test_fetch_uses_cache_and_records_history() -> None:
    transport = RecordingTransport(text="{}")
    client = Client.create_with_http_client(make_http_client(transport))
    client.add_cache(MemoryCacheStore())

    await client.ip.fetch("8.8.8.8")
    await client.ip.fetch("8.8.8.8")

    assert len(transport.requests) == 1
    assert client.get_last_response().extensions.get("from_cache") is True


@pytest.mark.asyncio
async def test_fetch_with_throttling_waits_for_permits() -> None:
    transport = RecordingTransport()
    client = Client(
        Builder(make_http_client(transport)),
        throttle=True,
        throttle_options={"policy": "token_bucket", "limit": 10, "interval": "1 second"},
    )

    for _ in range(11):
        await client.ip.fetch("8.8.8.8")

    assert len(transport.requests) == 11
