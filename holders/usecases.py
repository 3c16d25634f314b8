import asyncio
import logging
from typing import Awaitable, Callable
from holders.services import ChainService
from holders.sim_service import SimHoldersService
from holders.schemas import HolderReportResponse, ReportEntryResponse
from holders.units import format_units, parse_units
from core.environment.config import Settings


class BuildHolderReportUseCase:
    """
    Use case for building the holder report.

    Looks up token decimals, retrieves every holder at or above the
    threshold, then classifies holders one by one in retrieval order.

    Parameters
    ----------
    sim_service : SimHoldersService
        Paginated holder retriever
    chain_service : ChainService
        On-chain queries and classification
    settings : Settings
        Application settings
    logger : logging.Logger
        Logger instance
    sleep : Callable[[float], Awaitable[None]]
        Coroutine used for pacing between classifications
    """

    def __init__(
        self,
        sim_service: SimHoldersService,
        chain_service: ChainService,
        settings: Settings,
        logger: logging.Logger,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.sim_service = sim_service
        self.chain_service = chain_service
        self.settings = settings
        self.logger = logger
        self._sleep = sleep

    async def __call__(
        self,
        threshold: str | None = None,
        max_records: int | None = None
    ) -> HolderReportResponse:
        """
        Execute use case.

        Parameters
        ----------
        threshold : str | None
            Minimum balance in whole tokens, defaults to configured value
        max_records : int | None
            Stop after this many qualifying holders, defaults to configured value

        Returns
        -------
        HolderReportResponse
            Complete report
        """
        threshold = threshold if threshold is not None else self.settings.threshold
        token_address = self.settings.token_address

        decimals = await self.chain_service.get_decimals(token_address)
        threshold_units = parse_units(threshold, decimals)

        self.logger.info(f"Fetching holders of {token_address} with balance >= {threshold}")
        holders = await self.sim_service.get_holders_above_threshold(
            threshold_units,
            max_records=max_records
        )

        entries = []
        for index, holder in enumerate(holders):
            if index:
                await self._sleep(self.settings.classify_delay)

            classification = await self.chain_service.classify_address(holder.address)
            entries.append(
                ReportEntryResponse(
                    address=holder.address,
                    balance=format_units(holder.balance, decimals),
                    type=classification.label,
                    account_type=classification.account_type.value,
                    owner_count=classification.owner_count
                )
            )

        self.logger.info(f"Classified {len(entries)} holders")

        return HolderReportResponse(
            token_address=token_address,
            chain_id=self.settings.chain_id,
            decimals=decimals,
            threshold=threshold,
            total_holders=len(entries),
            holders=entries
        )
