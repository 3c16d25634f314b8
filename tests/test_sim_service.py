import logging
import pytest
from unittest.mock import call

from core.environment.config import Settings
from core.exceptions import RetrievalError
from core.http.providers import create_session
from holders.sim_service import SimHoldersService
from holders.units import parse_units


def make_address(index: int) -> str:
    return "0x" + str(index).rjust(40, "0")


def make_holder(index: int, balance: int) -> dict:
    return {"wallet_address": make_address(index), "balance": str(balance)}


class TestThresholdFiltering:
    """
    Threshold filtering over exact integer balances.
    """

    @pytest.mark.asyncio
    async def test_includes_holder_equal_to_threshold(self, sim_service, sim_api):
        """
        Holders at exactly the threshold are kept, lower balances dropped.
        """
        sim_api.add_page([
            make_holder(1, 99),
            make_holder(2, 100),
            make_holder(3, 101),
        ])

        records = await sim_service.get_holders_above_threshold(100)

        assert [r.address for r in records] == [make_address(2), make_address(3)]
        assert [r.balance for r in records] == [100, 101]

    @pytest.mark.asyncio
    async def test_eighteen_decimals_boundary(self, sim_service, sim_api):
        """
        25000 tokens at 18 decimals: exact boundary included, one unit below excluded.
        """
        threshold = parse_units("25000", 18)
        assert threshold == 25000 * 10 ** 18

        sim_api.add_page([
            make_holder(1, threshold - 1),
            make_holder(2, threshold),
            make_holder(3, 10 ** 40),
        ])

        records = await sim_service.get_holders_above_threshold(threshold)

        assert [r.balance for r in records] == [threshold, 10 ** 40]

    @pytest.mark.asyncio
    async def test_balances_beyond_float_precision(self, sim_service, sim_api):
        """
        Balances differing only past float precision are compared exactly.
        """
        threshold = 2 ** 64 + 1
        sim_api.add_page([
            make_holder(1, 2 ** 64),
            make_holder(2, 2 ** 64 + 1),
        ])

        records = await sim_service.get_holders_above_threshold(threshold)

        assert len(records) == 1
        assert records[0].address == make_address(2)


class TestPagination:
    """
    Cursor-driven pagination.
    """

    @pytest.mark.asyncio
    async def test_two_pages(self, sim_service, sim_api, sleep_mock):
        """
        Page 1 has 3 qualifying and 2 non-qualifying holders plus a cursor,
        page 2 has 1 qualifying holder and no cursor.
        """
        sim_api.add_page(
            [
                make_holder(1, 500),
                make_holder(2, 10),
                make_holder(3, 300),
                make_holder(4, 20),
                make_holder(5, 100),
            ],
            next_offset="cursor-1"
        )
        sim_api.add_page([make_holder(6, 1000)])

        records = await sim_service.get_holders_above_threshold(100)

        assert [r.address for r in records] == [
            make_address(1), make_address(3), make_address(5), make_address(6)
        ]
        assert len(sim_api.requests) == 2
        assert sim_api.requests[0]["query"] == {"limit": "5"}
        assert sim_api.requests[1]["query"] == {"limit": "5", "offset": "cursor-1"}
        assert sleep_mock.await_args_list == [call(0.5)]

    @pytest.mark.asyncio
    async def test_last_item_of_last_page(self, sim_service, sim_api):
        """
        A qualifying holder positioned last on the last page is returned.
        """
        sim_api.add_page([make_holder(1, 1)], next_offset="a")
        sim_api.add_page([make_holder(2, 1)], next_offset="b")
        sim_api.add_page([make_holder(3, 1), make_holder(4, 7)])

        records = await sim_service.get_holders_above_threshold(5)

        assert [r.address for r in records] == [make_address(4)]
        assert len(sim_api.requests) == 3

    @pytest.mark.asyncio
    async def test_null_cursor_terminates(self, sim_service, sim_api):
        """
        An explicit null ``next_offset`` ends pagination.
        """
        sim_api.add_response(200, {"holders": [make_holder(1, 10)], "next_offset": None})

        records = await sim_service.get_holders_above_threshold(1)

        assert len(records) == 1
        assert len(sim_api.requests) == 1

    @pytest.mark.asyncio
    async def test_empty_pages(self, sim_service, sim_api):
        """
        Empty pages with a cursor keep pagination going.
        """
        sim_api.add_page([], next_offset="a")
        sim_api.add_page([])

        records = await sim_service.get_holders_above_threshold(1)

        assert records == []
        assert len(sim_api.requests) == 2

    @pytest.mark.asyncio
    async def test_request_carries_api_key_and_token(self, sim_service, sim_api):
        """
        Requests go to the configured chain and token with the API key header.
        """
        sim_api.add_page([])

        await sim_service.get_holders_above_threshold(1)

        request = sim_api.requests[0]
        assert request["api_key"] == "test"
        assert request["path"] == "/v1/evm/token-holders/1/0xc00e94cb662c3520282e6f5717214004a7f26888"

    @pytest.mark.asyncio
    async def test_max_records_stops_pagination(self, sim_service, sim_api):
        """
        Reaching ``max_records`` stops before the next page is requested.
        """
        sim_api.add_page(
            [make_holder(1, 10), make_holder(2, 10), make_holder(3, 10)],
            next_offset="more"
        )

        records = await sim_service.get_holders_above_threshold(1, max_records=2)

        assert [r.address for r in records] == [make_address(1), make_address(2)]
        assert len(sim_api.requests) == 1

    @pytest.mark.asyncio
    async def test_max_records_on_last_page_does_not_warn(self, sim_service, sim_api, caplog):
        """
        Hitting the limit exactly on the final page cuts nothing off.
        """
        sim_api.add_page([make_holder(1, 10)], next_offset="more")
        sim_api.add_page([make_holder(2, 10)])

        with caplog.at_level(logging.WARNING, logger="token_holders"):
            records = await sim_service.get_holders_above_threshold(1, max_records=2)

        assert [r.address for r in records] == [make_address(1), make_address(2)]
        assert len(sim_api.requests) == 2
        assert not [r for r in caplog.records if r.levelno == logging.WARNING]

    @pytest.mark.asyncio
    async def test_max_records_warns_when_holders_are_dropped(self, sim_service, sim_api, caplog):
        sim_api.add_page([make_holder(1, 10), make_holder(2, 10), make_holder(3, 10)])

        with caplog.at_level(logging.WARNING, logger="token_holders"):
            records = await sim_service.get_holders_above_threshold(1, max_records=2)

        assert len(records) == 2
        assert "Reached max_records=2" in caplog.text

    @pytest.mark.asyncio
    async def test_max_records_defaults_to_setting(self, sim_service, sim_api):
        """
        Without an explicit limit the configured ``max_records`` applies.
        """
        sim_service.settings = sim_service.settings.model_copy(update={"max_records": 1})
        sim_api.add_page([make_holder(1, 10), make_holder(2, 10)], next_offset="more")

        records = await sim_service.get_holders_above_threshold(1)

        assert [r.address for r in records] == [make_address(1)]
        assert len(sim_api.requests) == 1

    @pytest.mark.asyncio
    async def test_addresses_are_checksummed(self, sim_service, sim_api):
        """
        Holder addresses are returned in checksum form.
        """
        sim_api.add_page([
            {"wallet_address": "0xc00e94cb662c3520282e6f5717214004a7f26888", "balance": "1"}
        ])

        records = await sim_service.get_holders_above_threshold(1)

        assert records[0].address == "0xc00e94Cb662C3520282E6f5717214004A7f26888"


class TestRetry:
    """
    Per-page retry with exponential backoff.
    """

    @pytest.mark.asyncio
    async def test_recovers_after_transient_failures(self, sim_service, sim_api, sleep_mock):
        """
        Two failures below the attempt ceiling give the same result as none.
        """
        sim_api.add_response(429, "Too Many Requests")
        sim_api.add_response(503, "Service Unavailable")
        sim_api.add_page([make_holder(1, 10), make_holder(2, 1)])

        records = await sim_service.get_holders_above_threshold(5)

        assert [r.address for r in records] == [make_address(1)]
        assert len(sim_api.requests) == 3
        # base_delay * 2 ** attempt, first retry waits twice the base
        assert sleep_mock.await_args_list == [call(2.0), call(4.0)]

    @pytest.mark.asyncio
    async def test_fails_at_attempt_ceiling(self, sim_service, sim_api, sleep_mock):
        """
        Failing on every attempt aborts the retrieval with the last cause.
        """
        for _ in range(3):
            sim_api.add_response(429, "Too Many Requests")

        with pytest.raises(RetrievalError) as exc_info:
            await sim_service.get_holders_above_threshold(1)

        assert "after 3 attempts" in exc_info.value.message
        assert "429" in exc_info.value.message
        assert len(sim_api.requests) == 3
        assert sleep_mock.await_args_list == [call(2.0), call(4.0)]

    @pytest.mark.asyncio
    async def test_failure_on_later_page_returns_nothing(self, sim_service, sim_api):
        """
        A page failing after earlier successes still fails the whole retrieval.
        """
        sim_api.add_page([make_holder(1, 10)], next_offset="next")
        for _ in range(3):
            sim_api.add_response(500, "boom")

        with pytest.raises(RetrievalError) as exc_info:
            await sim_service.get_holders_above_threshold(1)

        assert "500" in exc_info.value.message
        assert len(sim_api.requests) == 4

    @pytest.mark.asyncio
    async def test_malformed_response_is_retried(self, sim_service, sim_api):
        """
        A body missing the holders list counts as a failed attempt.
        """
        sim_api.add_response(200, {"next_offset": "x"})
        sim_api.add_page([make_holder(1, 10)])

        records = await sim_service.get_holders_above_threshold(1)

        assert len(records) == 1
        assert len(sim_api.requests) == 2

    @pytest.mark.asyncio
    async def test_malformed_response_exhausts_retries(self, sim_service, sim_api):
        """
        Persistently malformed pages surface as a retrieval error.
        """
        sim_api.add_response(200, "not json")
        sim_api.add_response(200, {"holders": [{"wallet_address": make_address(1)}]})
        sim_api.add_response(200, {"holders": [{"wallet_address": make_address(1), "balance": "-5"}]})

        with pytest.raises(RetrievalError):
            await sim_service.get_holders_above_threshold(1)

        assert len(sim_api.requests) == 3

    @pytest.mark.asyncio
    async def test_unreachable_api(self, settings, logger, sleep_mock):
        """
        Connection failures are retried and then reported.
        """
        settings = settings.model_copy(update={"sim_api_url": "http://127.0.0.1:1"})
        async with create_session(settings) as session:
            service = SimHoldersService(
                session=session,
                settings=settings,
                logger=logger,
                sleep=sleep_mock
            )
            with pytest.raises(RetrievalError):
                await service.fetch_page()

        assert sleep_mock.await_count == 2

    @pytest.mark.asyncio
    async def test_single_attempt_budget(self, sim_api, logger, sleep_mock):
        """
        With one attempt there is no backoff at all.
        """
        settings = Settings(
            sim_api_key="test",
            infura_url="http://localhost:8545",
            sim_api_url=sim_api.url,
            max_attempts=1,
        )
        sim_api.add_response(429, "Too Many Requests")

        async with create_session(settings) as session:
            service = SimHoldersService(
                session=session,
                settings=settings,
                logger=logger,
                sleep=sleep_mock
            )
            with pytest.raises(RetrievalError):
                await service.fetch_page()

        sleep_mock.assert_not_awaited()
