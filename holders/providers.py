from dishka import Provider, Scope, provide, FromComponent
from holders.services import ChainService
from holders.sim_service import SimHoldersService
from holders.usecases import BuildHolderReportUseCase
from typing import Annotated
from web3 import AsyncWeb3
from core.environment.config import Settings
import aiohttp
import logging


class HoldersProvider(Provider):
    """
    Provider for holder retrieval and classification dependencies.
    """

    component = "holders"

    @provide(scope=Scope.APP)
    def get_web3_clients(
        self,
        settings: Annotated[Settings, FromComponent("environment")]
    ) -> dict[str, AsyncWeb3]:
        """
        Provide Web3 clients for the configured RPC endpoints.

        Parameters
        ----------
        settings : Settings
            Application settings

        Returns
        -------
        dict[str, AsyncWeb3]
            Web3 clients keyed by provider name, in fallback order
        """
        timeout = aiohttp.ClientTimeout(total=settings.rpc_timeout)
        return {
            name: AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(url, request_kwargs={"timeout": timeout}))
            for name, url in settings.rpc_urls.items()
        }

    @provide(scope=Scope.APP)
    def get_chain_service(
        self,
        web3_clients: Annotated[
            dict[str, AsyncWeb3], FromComponent("holders")
        ],
        logger: Annotated[logging.Logger, FromComponent("logger")]
    ) -> ChainService:
        """
        Provide chain service.

        Parameters
        ----------
        web3_clients : dict[str, AsyncWeb3]
            Dictionary of Web3 clients
        logger : logging.Logger
            Logger instance

        Returns
        -------
        ChainService
            Chain service instance
        """
        return ChainService(web3_clients=web3_clients, logger=logger)

    @provide(scope=Scope.APP)
    def get_sim_service(
        self,
        session: Annotated[
            aiohttp.ClientSession, FromComponent("http")
        ],
        settings: Annotated[Settings, FromComponent("environment")],
        logger: Annotated[logging.Logger, FromComponent("logger")]
    ) -> SimHoldersService:
        """
        Provide Sim holders service.

        Parameters
        ----------
        session : aiohttp.ClientSession
            HTTP session for the Sim API
        settings : Settings
            Application settings
        logger : logging.Logger
            Logger instance

        Returns
        -------
        SimHoldersService
            Sim holders service instance
        """
        return SimHoldersService(session=session, settings=settings, logger=logger)

    @provide(scope=Scope.REQUEST)
    def get_holder_report_use_case(
        self,
        sim_service: Annotated[SimHoldersService, FromComponent("holders")],
        chain_service: Annotated[ChainService, FromComponent("holders")],
        settings: Annotated[Settings, FromComponent("environment")],
        logger: Annotated[logging.Logger, FromComponent("logger")]
    ) -> BuildHolderReportUseCase:
        """
        Provide build holder report use case.

        Parameters
        ----------
        sim_service : SimHoldersService
            Sim holders service instance
        chain_service : ChainService
            Chain service instance
        settings : Settings
            Application settings
        logger : logging.Logger
            Logger instance

        Returns
        -------
        BuildHolderReportUseCase
            Build holder report use case
        """
        return BuildHolderReportUseCase(
            sim_service=sim_service,
            chain_service=chain_service,
            settings=settings,
            logger=logger
        )
