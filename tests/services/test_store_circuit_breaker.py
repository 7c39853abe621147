"""Unit tests for the store circuit breaker."""

import time

import pytest

from thindata.services.errors import StoreUnavailableError
from thindata.services.store_circuit_breaker import StoreCircuitBreaker


class TestStoreCircuitBreaker:
    @pytest.fixture
    def breaker(self):
        return StoreCircuitBreaker(0.1)

    def test_negative_timeout_rejected(self):
        with pytest.raises(ValueError):
            StoreCircuitBreaker(-1)

    def test_initial_state_closed(self, breaker):
        assert not breaker.is_open()

    def test_open_circuit(self, breaker):
        breaker.open()
        assert breaker.is_open()

    def test_close_circuit(self, breaker):
        breaker.open()
        breaker.close()
        assert not breaker.is_open()

    def test_recovery_timeout(self, breaker):
        breaker.open()
        assert breaker.is_open()
        time.sleep(0.15)
        assert not breaker.is_open()

    @pytest.mark.asyncio
    async def test_protect_returns_result_when_closed(self, breaker):
        async def succeed():
            return "success"

        assert await breaker.protect(succeed)() == "success"

    @pytest.mark.asyncio
    async def test_protect_raises_when_open(self, breaker):
        calls = []

        async def record():
            calls.append(True)

        breaker.open()

        with pytest.raises(StoreUnavailableError):
            await breaker.protect(record)()
        assert calls == []

    @pytest.mark.asyncio
    async def test_protect_opens_on_exception(self, breaker):
        async def refuse():
            raise ConnectionError("refused")

        with pytest.raises(StoreUnavailableError, match="refused"):
            await breaker.protect(refuse)()
        assert breaker.is_open()

    @pytest.mark.asyncio
    async def test_success_closes_circuit(self, breaker):
        async def succeed():
            return None

        breaker.open()
        time.sleep(0.15)

        await breaker.protect(succeed)()

        assert not breaker.is_open()
