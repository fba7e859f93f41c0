import json
import threading
from concurrent.futures import ThreadPoolExecutor

import httpx
import pytest

from src.integrations.clients.real_http.credentials import CredentialBroker, CredentialCache
from src.integrations.contracts.interfaces import Credentials, POSProvider
from src.integrations.errors import (
    AuthorizationError,
    ConfigurationError,
    HTTPStatusError,
    IntegrationResponseError,
    TransportError,
)

CREDS_HOST = "creds.test"
BASE_URL = f"https://{CREDS_HOST}"
SQUARE_TOKENS = {"tokens": {"oauth_token": "T", "merchantId": "M1", "refreshToken": "R"}}


@pytest.mark.asyncio
async def test_square_tokens_fetched_once_within_ttl(make_transport, clock):
    transport, seen = make_transport({("POST", f"{CREDS_HOST}/getMerchantTokens"): SQUARE_TOKENS})
    broker = CredentialBroker(base_url=BASE_URL, cache=CredentialCache(clock=clock), transport=transport)

    creds = await broker.get_credentials("M1", POSProvider.SQUARE)

    assert creds.access_token == "T"
    assert creds.merchant_id == "M1"
    assert creds.refresh_token == "R"
    assert creds.provider is POSProvider.SQUARE
    assert json.loads(seen[0].content) == {"merchantId": "M1"}

    clock.advance(29 * 60)
    again = await broker.get_credentials("M1", POSProvider.SQUARE)
    assert again == creds
    assert len(seen) == 1


@pytest.mark.asyncio
async def test_expired_entry_is_refetched(make_transport, clock):
    transport, seen = make_transport({("POST", f"{CREDS_HOST}/getMerchantTokens"): SQUARE_TOKENS})
    broker = CredentialBroker(base_url=BASE_URL, cache=CredentialCache(clock=clock), transport=transport)

    await broker.get_credentials("M1", POSProvider.SQUARE)
    clock.advance(30 * 60)
    await broker.get_credentials("M1", POSProvider.SQUARE)

    assert len(seen) == 2


@pytest.mark.asyncio
async def test_expired_entry_not_resurrected_when_refetch_fails(make_transport, clock):
    transport, _ = make_transport(
        {("POST", f"{CREDS_HOST}/getMerchantTokens"): httpx.Response(500, json={"error": "down"})}
    )
    cache = CredentialCache(clock=clock)
    cache.put("M1", POSProvider.SQUARE, Credentials(POSProvider.SQUARE, "OLD", "M1"))
    broker = CredentialBroker(base_url=BASE_URL, cache=cache, transport=transport)

    clock.advance(31 * 60)
    with pytest.raises(HTTPStatusError) as exc_info:
        await broker.get_credentials("M1", POSProvider.SQUARE)

    assert exc_info.value.status_code == 500
    assert ("M1", POSProvider.SQUARE) not in cache
    assert cache.get("M1", POSProvider.SQUARE) is None


@pytest.mark.asyncio
async def test_clover_credentials_use_their_own_endpoint_and_cache_key(make_transport, clock):
    transport, seen = make_transport(
        {
            ("POST", f"{CREDS_HOST}/getMerchantTokens"): SQUARE_TOKENS,
            ("POST", f"{CREDS_HOST}/getCloverCredentials"): {
                "credentials": {"accessToken": "CT", "merchantId": "M1"}
            },
        }
    )
    broker = CredentialBroker(base_url=BASE_URL + "/", cache=CredentialCache(clock=clock), transport=transport)

    square = await broker.get_credentials("M1", POSProvider.SQUARE)
    clover = await broker.get_credentials("M1", POSProvider.CLOVER)

    assert square.access_token == "T"
    assert clover.access_token == "CT"
    assert clover.refresh_token is None
    assert [r.url.path for r in seen] == ["/getMerchantTokens", "/getCloverCredentials"]
    assert len(broker.cache) == 2


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"tokens": {"oauth_token": "", "merchantId": "M1", "refreshToken": "R"}},
        {"tokens": {"merchantId": "M1", "refreshToken": "R"}},
        {"tokens": {"oauth_token": 42, "merchantId": "M1", "refreshToken": "R"}},
        {"credentials": {"accessToken": "T", "merchantId": "M1"}},
        ["not", "an", "object"],
    ],
)
async def test_malformed_credential_body_is_rejected(make_transport, body):
    transport, _ = make_transport({("POST", f"{CREDS_HOST}/getMerchantTokens"): body})
    broker = CredentialBroker(base_url=BASE_URL, transport=transport)

    with pytest.raises(IntegrationResponseError):
        await broker.get_credentials("M1", POSProvider.SQUARE)
    assert len(broker.cache) == 0


@pytest.mark.asyncio
async def test_malformed_error_does_not_leak_token_values(make_transport):
    body = {"tokens": {"oauth_token": "SECRET", "merchantId": "", "refreshToken": "R"}}
    transport, _ = make_transport({("POST", f"{CREDS_HOST}/getMerchantTokens"): body})
    broker = CredentialBroker(base_url=BASE_URL, transport=transport)

    with pytest.raises(IntegrationResponseError) as exc_info:
        await broker.get_credentials("M1", POSProvider.SQUARE)

    assert "SECRET" not in str(exc_info.value)
    assert "SECRET" not in json.dumps(exc_info.value.payload)


@pytest.mark.asyncio
@pytest.mark.parametrize("base_url", ["", "not a url", "ftp://creds.test"])
async def test_bad_base_url_is_a_configuration_error(base_url):
    broker = CredentialBroker(base_url=base_url)
    with pytest.raises(ConfigurationError):
        await broker.get_credentials("M1", POSProvider.SQUARE)


@pytest.mark.asyncio
async def test_network_failure_is_a_transport_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    broker = CredentialBroker(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    with pytest.raises(TransportError):
        await broker.get_credentials("M1", POSProvider.SQUARE)


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [201, 401, 404])
async def test_non_200_is_an_http_status_error(make_transport, status_code):
    transport, _ = make_transport(
        {("POST", f"{CREDS_HOST}/getMerchantTokens"): httpx.Response(status_code, json=SQUARE_TOKENS)}
    )
    broker = CredentialBroker(base_url=BASE_URL, transport=transport)

    with pytest.raises(HTTPStatusError) as exc_info:
        await broker.get_credentials("M1", POSProvider.SQUARE)

    assert exc_info.value.status_code == status_code
    assert not isinstance(exc_info.value, AuthorizationError)


@pytest.mark.asyncio
async def test_invalidate_forces_refetch(make_transport):
    transport, seen = make_transport({("POST", f"{CREDS_HOST}/getMerchantTokens"): SQUARE_TOKENS})
    broker = CredentialBroker(base_url=BASE_URL, transport=transport)

    await broker.get_credentials("M1", POSProvider.SQUARE)
    broker.invalidate("M1", POSProvider.SQUARE)
    await broker.get_credentials("M1", POSProvider.SQUARE)

    assert len(seen) == 2


def test_credentials_repr_hides_token():
    creds = Credentials(POSProvider.SQUARE, access_token="SECRET", merchant_id="M1", refresh_token="R")
    assert "SECRET" not in repr(creds)
    assert "M1" in repr(creds)


def test_cache_clear_and_len(clock):
    cache = CredentialCache(clock=clock)
    cache.put("M1", POSProvider.SQUARE, Credentials(POSProvider.SQUARE, "T", "M1"))
    cache.put("M2", POSProvider.CLOVER, Credentials(POSProvider.CLOVER, "T2", "M2"))
    assert len(cache) == 2

    cache.clear()

    assert len(cache) == 0
    assert cache.get("M1", POSProvider.SQUARE) is None


def test_cache_concurrent_readers_and_writers(clock):
    cache = CredentialCache(clock=clock)
    errors = []
    start = threading.Barrier(8)

    def worker(n):
        start.wait()
        merchant = f"M{n % 4}"
        for i in range(200):
            try:
                if i % 10 == 0:
                    cache.put(merchant, POSProvider.SQUARE, Credentials(POSProvider.SQUARE, f"T{i}", merchant))
                elif i % 25 == 0:
                    cache.invalidate(merchant, POSProvider.SQUARE)
                else:
                    got = cache.get(merchant, POSProvider.SQUARE)
                    if got is not None and got.merchant_id != merchant:
                        errors.append(got)
            except Exception as exc:  # pragma: no cover - surfaced by the assert below
                errors.append(exc)

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(worker, range(8)))

    assert errors == []
    assert len(cache) <= 4
