"""Pytest fixtures for credential, catalog, and menu sync tests."""

from typing import Any, Callable, Dict, List, Tuple

import httpx
import pytest

from src.integrations.contracts.interfaces import CoffeeShop, POSProvider


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def square_shop():
    return CoffeeShop(
        id="1",
        name="Lakeside Roasters",
        merchant_id="M1",
        pos_type=POSProvider.SQUARE,
        address="112 Harbor St",
        latitude=43.65,
        longitude=-70.25,
        phone="(207) 555-0142",
    )


@pytest.fixture
def clover_shop():
    return CoffeeShop(
        id="2",
        name="Corner Bean",
        merchant_id="CM1",
        pos_type=POSProvider.CLOVER,
        address="9 Market Sq",
        latitude=43.66,
        longitude=-70.26,
        phone="(207) 555-0199",
    )


Route = Any  # dict -> 200 JSON, httpx.Response, or callable(request) -> httpx.Response


@pytest.fixture
def make_transport() -> Callable[[Dict[Tuple[str, str], Route]], Tuple[httpx.MockTransport, List[httpx.Request]]]:
    """
    Build an httpx.MockTransport answering by (METHOD, "host/path").

    Unknown routes answer 404 so a wrong URL fails loudly.
    """

    def factory(routes):
        seen: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            key = (request.method, f"{request.url.host}{request.url.path}")
            route = routes.get(key)
            if route is None:
                return httpx.Response(404, json={"message": f"no route for {key}"})
            if callable(route):
                return route(request)
            if isinstance(route, httpx.Response):
                return route
            return httpx.Response(200, json=route)

        return httpx.MockTransport(handler), seen

    return factory

