from dishka import Provider, Scope, provide, FromComponent
from typing import Annotated, AsyncIterable
from core.environment.config import Settings
import aiohttp


def create_session(settings: Settings) -> aiohttp.ClientSession:
    """
    Create HTTP session for the Sim API.

    Parameters
    ----------
    settings : Settings
        Application settings

    Returns
    -------
    aiohttp.ClientSession
        Session carrying the API key header and request timeout
    """
    return aiohttp.ClientSession(
        headers={"X-Sim-Api-Key": settings.sim_api_key},
        timeout=aiohttp.ClientTimeout(total=settings.request_timeout),
    )


class HttpProvider(Provider):
    """
    Provider for the shared HTTP session.
    """

    scope = Scope.APP
    component = "http"

    @provide(scope=Scope.APP)
    async def provide_http_session(
        self,
        settings: Annotated[Settings, FromComponent("environment")]
    ) -> AsyncIterable[aiohttp.ClientSession]:
        """
        Create HTTP session for the application.

        Parameters
        ----------
        settings : Settings
            Application settings

        Yields
        ------
        aiohttp.ClientSession
            HTTP session, closed on container shutdown
        """
        session = create_session(settings)

        try:
            yield session
        finally:
            await session.close()
