"""Unit tests for the httpx request gate."""

import httpx
import pytest

from time_guard.application.services.request_gate import (
    CLIENT_REPORTED_TIME_HEADER,
    RequestGate,
    is_clock_rejection,
    should_block,
)
from time_guard.domain.errors import ClockLockedError
from time_guard.domain.models.trust_state import TrustReason, TrustState
from tests.helpers.fake_device_clock import FakeDeviceClock


class GateFixture:
    def __init__(self, device_clock: FakeDeviceClock) -> None:
        self.state = TrustState().restored()
        self.rejections = 0
        self.gate = RequestGate(
            state_reader=lambda: self.state,
            device_clock=device_clock,
            on_clock_rejected=self._on_rejected,
        )

    def _on_rejected(self) -> None:
        self.rejections += 1


@pytest.fixture
def gate_fixture(device_clock: FakeDeviceClock) -> GateFixture:
    return GateFixture(device_clock)


class TestDecisions:
    def test_should_block_follows_lock(self) -> None:
        assert should_block(TrustState())
        assert not should_block(TrustState().restored())

    def test_only_428_is_a_clock_rejection(self) -> None:
        assert is_clock_rejection(428)
        assert not is_clock_rejection(401)
        assert not is_clock_rejection(200)


class TestHooks:
    def test_request_stamped_with_device_time(
        self, gate_fixture: GateFixture, device_clock: FakeDeviceClock
    ) -> None:
        device_clock.jump_wall(0.7)
        request = httpx.Request("GET", "https://api.test/orders")

        gate_fixture.gate.request_hook(request)

        assert request.headers[CLIENT_REPORTED_TIME_HEADER] == "1000000"

    def test_locked_request_raises(self, gate_fixture: GateFixture) -> None:
        gate_fixture.state = TrustState().invalidated(TrustReason.SKEW_EXCEEDED)
        request = httpx.Request("POST", "https://api.test/orders")

        with pytest.raises(ClockLockedError) as exc_info:
            gate_fixture.gate.request_hook(request)

        assert exc_info.value.method == "POST"
        assert CLIENT_REPORTED_TIME_HEADER not in request.headers

    def test_428_response_flags_rejection(self, gate_fixture: GateFixture) -> None:
        gate_fixture.gate.response_hook(httpx.Response(428))
        gate_fixture.gate.response_hook(httpx.Response(200))

        assert gate_fixture.rejections == 1


class TestAttach:
    async def test_async_client_blocked_before_network(
        self, gate_fixture: GateFixture
    ) -> None:
        sent: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            sent.append(request)
            return httpx.Response(200)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            gate_fixture.gate.attach(client)
            gate_fixture.state = TrustState()

            with pytest.raises(ClockLockedError):
                await client.get("https://api.test/orders")

        assert sent == []

    async def test_async_client_reports_428(self, gate_fixture: GateFixture) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert CLIENT_REPORTED_TIME_HEADER in request.headers
            return httpx.Response(428)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            gate_fixture.gate.attach(client)
            response = await client.get("https://api.test/orders")

        assert response.status_code == 428
        assert gate_fixture.rejections == 1

    def test_sync_client_keeps_existing_hooks(self, gate_fixture: GateFixture) -> None:
        seen: list[str] = []
        client = httpx.Client(
            transport=httpx.MockTransport(lambda request: httpx.Response(204)),
            event_hooks={"request": [lambda request: seen.append("existing")]},
        )

        gate_fixture.gate.attach(client)
        with client:
            client.get("https://api.test/ping")

        assert seen == ["existing"]
        assert len(client.event_hooks["request"]) == 2
