"""End-to-end scenarios: tampering, recovery and cross-instance trust.

Guards run on fake clocks, a manual scheduler and one in-process channel, so
every scenario is deterministic.
"""

import httpx
import pytest

from time_guard.api.main import create_app
from time_guard.application.services.time_guard_service import TimeGuardService
from time_guard.config.time_guard_config import TimeAuthorityServerConfig, TimeGuardConfig
from time_guard.domain.errors import ClockLockedError
from time_guard.domain.models.trust_state import TrustReason, TrustStatus
from time_guard.infrastructure.adapters.httpx_time_authority_client import (
    HttpxTimeAuthorityClient,
)
from time_guard.infrastructure.adapters.local_channel_transport import (
    LocalChannelHub,
    LocalChannelTransport,
)
from time_guard.infrastructure.stubs.manual_scheduler import ManualScheduler
from tests.helpers.fake_device_clock import FakeDeviceClock
from tests.helpers.guard_factory import build_guard

pytestmark = pytest.mark.integration


class TestTamperAndRecover:
    async def test_wall_clock_jump_locks_after_hysteresis_and_retry_recovers(
        self, hub: LocalChannelHub
    ) -> None:
        harness = build_guard(hub=hub)
        guard, clock = harness.guard, harness.clock

        await guard.init()
        assert guard.get_state().status is TrustStatus.OK
        assert guard.get_state().locked is False

        clock.jump_wall(301_000)
        await harness.scheduler.advance(1_000)
        assert guard.get_state().locked is False

        await harness.scheduler.advance(1_000)
        state = guard.get_state()
        assert state.status is TrustStatus.INVALID_CLOCK
        assert state.reason is TrustReason.SKEW_EXCEEDED
        assert state.locked is True

        # The user never fixes the device clock; the authority is still honest.
        assert await guard.retry_sync() is False
        assert guard.get_state().locked is True

        clock.jump_wall(-301_000)
        assert await guard.retry_sync() is True
        assert guard.get_state().locked is False

    async def test_retry_trusts_authority_matching_the_tampered_clock(
        self, hub: LocalChannelHub
    ) -> None:
        harness = build_guard(hub=hub)
        await harness.guard.init()
        harness.clock.jump_wall(301_000)
        await harness.scheduler.advance(2_000)
        assert harness.guard.get_state().locked is True

        harness.authority.queue_time(harness.clock.wall_ms())

        assert await harness.guard.retry_sync() is True
        assert harness.guard.get_state().locked is False
        assert harness.guard.get_state().skew_ms == 0

    async def test_heartbeat_cannot_unlock(self, hub: LocalChannelHub) -> None:
        harness = build_guard(
            hub=hub,
            config=TimeGuardConfig(heartbeat_interval_ms=10_000),
        )
        await harness.guard.init()
        harness.clock.jump_wall(301_000)
        await harness.scheduler.advance(2_000)
        harness.clock.jump_wall(-301_000)

        await harness.scheduler.advance(10_000)

        state = harness.guard.get_state()
        assert state.status is TrustStatus.INVALID_CLOCK
        assert state.reason is TrustReason.SKEW_EXCEEDED
        assert state.locked is True
        assert state.last_sync_virtual_ms == 1_010_000
        assert harness.authority.refresh_calls[-1] is True


class TestMaxOffline:
    async def test_unreachable_authority_locks_after_window(
        self, hub: LocalChannelHub
    ) -> None:
        harness = build_guard(
            hub=hub,
            config=TimeGuardConfig(heartbeat_interval_ms=60_000),
        )
        await harness.guard.init()
        harness.authority.unreachable = True

        await harness.scheduler.advance(1_800_000)
        assert harness.guard.get_state().locked is False

        await harness.scheduler.advance(1_000)
        state = harness.guard.get_state()
        assert state.reason is TrustReason.MAX_OFFLINE
        assert state.locked is True
        assert state.skew_ms == 0


class TestCrossInstance:
    async def test_lock_propagates_to_peer(self, hub: LocalChannelHub) -> None:
        a = build_guard(hub=hub, instance_id="a")
        b = build_guard(hub=hub, instance_id="b")
        await a.guard.init()
        await b.guard.init()

        a.clock.advance(1_000)
        a.authority.queue_time(1_001_000)
        a.clock.jump_wall(-120_000)
        assert await a.guard.retry_sync() is False

        state = b.guard.get_state()
        assert state.locked is True
        assert state.reason is TrustReason.SKEW_EXCEEDED
        assert state.last_sync_virtual_ms == 1_001_000

    async def test_peer_cannot_unlock_locked_instance(self, hub: LocalChannelHub) -> None:
        a = build_guard(hub=hub, instance_id="a")
        b = build_guard(hub=hub, instance_id="b")
        await a.guard.init()
        await b.guard.init()
        b.guard.flag_backend_428()

        a.clock.advance(5_000)
        assert await a.guard.retry_sync() is True

        state = b.guard.get_state()
        assert state.locked is True
        assert state.status is TrustStatus.OK
        assert state.last_sync_virtual_ms == 1_005_000

    async def test_fresher_snapshot_wins_regardless_of_arrival(
        self, hub: LocalChannelHub
    ) -> None:
        a = build_guard(hub=hub, instance_id="a")
        b = build_guard(hub=hub, instance_id="b")
        await a.guard.init()
        await b.guard.init()

        stale = a.guard.get_state()
        b.clock.advance(10_000)
        await b.guard.heartbeat_resync()
        fresh = b.guard.get_state()

        a.guard.coordinator.reconcile(stale)
        b.guard.coordinator.reconcile(stale)

        assert fresh.last_sync_virtual_ms == 1_010_000
        assert a.guard.get_state().last_sync_virtual_ms == fresh.last_sync_virtual_ms
        assert b.guard.get_state().last_sync_virtual_ms == fresh.last_sync_virtual_ms

    async def test_late_joiner_adopts_existing_anchor(self, hub: LocalChannelHub) -> None:
        a = build_guard(hub=hub, instance_id="a")
        await a.guard.init()
        late_clock = FakeDeviceClock(wall_ms=1_000_000, monotonic_ms=50_000)
        b = build_guard(hub=hub, instance_id="b", clock=late_clock)
        b.authority.unreachable = True
        await b.guard.init()
        assert b.guard.get_state().reason is TrustReason.NETWORK

        a.clock.advance(2_000)
        late_clock.advance(2_000)
        await a.guard.retry_sync()

        state = b.guard.get_state()
        assert state.last_sync_virtual_ms == 1_002_000
        assert state.locked is True
        assert b.guard.virtual_now() == a.guard.virtual_now()


class TestAgainstDevelopmentAuthority:
    async def test_guard_syncs_and_gates_requests_over_http(
        self, hub: LocalChannelHub
    ) -> None:
        clock = FakeDeviceClock(wall_ms=1_700_000_000_000, monotonic_ms=0)
        server_offset = {"ms": 0.0}
        app = create_app(
            TimeAuthorityServerConfig(),
            now_ms=lambda: clock.wall_ms() + server_offset["ms"],
        )
        config = TimeGuardConfig(api_base="http://authority.test")
        time_http = httpx.AsyncClient(transport=httpx.ASGITransport(app=app))
        guard = TimeGuardService(
            config=config,
            device_clock=clock,
            time_client=HttpxTimeAuthorityClient.from_config(config, client=time_http),
            scheduler=ManualScheduler(on_advance=clock.advance),
            transport=LocalChannelTransport(hub=hub),
        )
        api = httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://authority.test"
        )
        guard.install_httpx(api)

        await guard.init()
        assert guard.get_state().locked is False
        assert (await api.get("/v1/clock-check")).status_code == 200

        # The server's clock moves away from the client's.
        server_offset["ms"] = 400_000
        response = await api.get("/v1/clock-check")

        assert response.status_code == 428
        assert guard.get_state().reason is TrustReason.BACKEND_428
        with pytest.raises(ClockLockedError):
            await api.get("/v1/clock-check")

        await api.aclose()
        await time_http.aclose()
