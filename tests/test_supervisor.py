import asyncio

import pytest

from marketlens.infrastructure.exchanges.supervisor import ConnectionSupervisor


class TestBackoff:

    def test_linear_delay_capped(self):
        supervisor = ConnectionSupervisor("binance", base_delay=5.0, backoff_cap=5)
        assert [supervisor.delay_for(n) for n in (1, 2, 5, 6, 10)] == [5, 10, 25, 25, 25]

    @pytest.mark.asyncio
    async def test_retry_after_delay(self):
        supervisor = ConnectionSupervisor("binance", base_delay=0.01, max_attempts=3)
        assert await supervisor.wait_before_retry() is True
        assert supervisor.attempt == 1

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self):
        supervisor = ConnectionSupervisor("kraken", base_delay=0.001, max_attempts=2)
        assert await supervisor.wait_before_retry() is True
        assert await supervisor.wait_before_retry() is True
        assert await supervisor.wait_before_retry() is False
        assert supervisor.exhausted is True

    @pytest.mark.asyncio
    async def test_reset_after_success(self):
        supervisor = ConnectionSupervisor("coinbase", base_delay=0.001, max_attempts=1)
        assert await supervisor.wait_before_retry() is True
        supervisor.reset()
        assert await supervisor.wait_before_retry() is True
        assert supervisor.exhausted is False


class TestCancel:

    @pytest.mark.asyncio
    async def test_cancel_interrupts_pending_wait(self):
        supervisor = ConnectionSupervisor("binance", base_delay=60.0)
        waiter = asyncio.create_task(supervisor.wait_before_retry())
        await asyncio.sleep(0.01)

        supervisor.cancel()

        assert await asyncio.wait_for(waiter, timeout=1.0) is False
        assert supervisor.cancelled is True

    @pytest.mark.asyncio
    async def test_no_retry_once_cancelled(self):
        supervisor = ConnectionSupervisor("binance", base_delay=0.001)
        supervisor.cancel()
        assert await supervisor.wait_before_retry() is False
        assert supervisor.attempt == 0
