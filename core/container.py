from dishka import AsyncContainer, make_async_container
from dishka.integrations.fastapi import FastapiProvider

from core.environment.providers import EnvironmentProvider
from holders.providers import HoldersProvider
from core.http.providers import HttpProvider
from core.logging.providers import LoggerProvider


def create_container() -> AsyncContainer:
    """
    Build dependency container with all application providers.

    Returns
    -------
    AsyncContainer
        Fresh container, nothing resolved yet
    """
    return make_async_container(
        FastapiProvider(),
        EnvironmentProvider(),
        LoggerProvider(),
        HoldersProvider(),
        HttpProvider()
    )


container = create_container()
