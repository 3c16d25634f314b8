import asyncio
import logging
from http import HTTPStatus
from typing import Awaitable, Callable
import aiohttp
from pydantic import ValidationError
from core.environment.config import Settings
from core.exceptions import RetrievalError
from holders.entities import HolderRecord
from holders.schemas import SimHoldersPage


RETRYABLE_ERRORS = (
    aiohttp.ClientError,
    asyncio.TimeoutError,
    ValidationError,
    ValueError,
)


class SimHoldersService:
    """
    Service for fetching token holders from the Dune Sim API.

    Pages are fetched one at a time. Each page request is retried with
    exponential backoff; holders below the threshold are dropped as soon
    as their page arrives.

    Parameters
    ----------
    session : aiohttp.ClientSession
        HTTP session carrying the API key header
    settings : Settings
        Application settings
    logger : logging.Logger
        Logger instance
    sleep : Callable[[float], Awaitable[None]]
        Coroutine used for backoff and pacing pauses
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        settings: Settings,
        logger: logging.Logger,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.session = session
        self.settings = settings
        self.logger = logger
        self._sleep = sleep

    async def get_holders_above_threshold(
        self,
        threshold: int,
        max_records: int | None = None
    ) -> list[HolderRecord]:
        """
        Retrieve all holders whose balance is at least ``threshold``.

        Parameters
        ----------
        threshold : int
            Minimum balance in the token's smallest unit, inclusive
        max_records : int | None
            Stop paginating once this many holders qualify. Falls back to
            the configured value; ``None`` means no limit.

        Returns
        -------
        list[HolderRecord]
            Qualifying holders in API order

        Raises
        ------
        RetrievalError
            If any page cannot be fetched within the retry budget
        """
        if max_records is None:
            max_records = self.settings.max_records

        records: list[HolderRecord] = []
        offset: str | None = None
        page_number = 0

        while True:
            page = await self.fetch_page(offset)
            page_number += 1

            qualifying = [
                HolderRecord(address=holder.wallet_address, balance=holder.balance)
                for holder in page.holders
                if holder.balance >= threshold
            ]
            records.extend(qualifying)
            self.logger.info(
                f"Page {page_number}: {len(page.holders)} holders, "
                f"{len(qualifying)} qualifying (total: {len(records)})"
            )

            if max_records is not None and len(records) >= max_records:
                if page.next_offset or len(records) > max_records:
                    self.logger.warning(
                        f"Reached max_records={max_records}, stopping pagination after page {page_number}"
                    )
                return records[:max_records]

            offset = page.next_offset
            if not offset:
                break

            await self._sleep(self.settings.page_delay)

        self.logger.info(f"Fetched {page_number} pages, {len(records)} holders qualify")
        return records

    async def fetch_page(self, offset: str | None = None) -> SimHoldersPage:
        """
        Fetch a single page, retrying on rate limits and transport errors.

        The wait before retry ``n`` is ``base_delay * 2 ** n``, so the
        first retry already waits twice the base delay.

        Parameters
        ----------
        offset : str | None
            Cursor returned by the previous page

        Returns
        -------
        SimHoldersPage
            Parsed page

        Raises
        ------
        RetrievalError
            If every attempt fails
        """
        max_attempts = self.settings.max_attempts
        attempt = 0
        last_error: Exception | None = None

        while attempt < max_attempts:
            try:
                return await self._request_page(offset)
            except RETRYABLE_ERRORS as e:
                last_error = e
                attempt += 1
                if attempt >= max_attempts:
                    self.logger.warning(
                        f"Sim API attempt {attempt}/{max_attempts} failed: {self._describe(e)}"
                    )
                    break

                delay = self.settings.base_delay * 2 ** attempt
                self.logger.warning(
                    f"Sim API attempt {attempt}/{max_attempts} failed: {self._describe(e)}; "
                    f"retrying in {delay:.1f}s"
                )
                await self._sleep(delay)

        raise RetrievalError(
            f"Failed to fetch token holders after {max_attempts} attempts: "
            f"{self._describe(last_error)}"
        ) from last_error

    async def _request_page(self, offset: str | None) -> SimHoldersPage:
        """
        Perform one page request without retries.

        Parameters
        ----------
        offset : str | None
            Pagination cursor

        Returns
        -------
        SimHoldersPage
            Parsed page
        """
        params = {"limit": str(self.settings.page_limit)}
        if offset:
            params["offset"] = offset

        async with self.session.get(self.settings.get_holders_url(), params=params) as response:
            response.raise_for_status()
            data = await response.json(content_type=None)

        if not isinstance(data, dict):
            raise ValueError(f"Unexpected response body: {type(data).__name__}")
        return SimHoldersPage.model_validate(data)

    @staticmethod
    def _describe(error: Exception | None) -> str:
        if isinstance(error, aiohttp.ClientResponseError):
            if error.status == HTTPStatus.TOO_MANY_REQUESTS:
                return "429 Too Many Requests"
            return f"Sim API error: {error.status} {error.message}"
        if isinstance(error, asyncio.TimeoutError):
            return "request timed out"
        return str(error)
