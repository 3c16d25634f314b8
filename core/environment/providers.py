from dishka import Provider, Scope, provide
from pydantic import ValidationError
from core.environment.config import Settings
from core.exceptions import ConfigurationError


def load_settings() -> Settings:
    """
    Build settings from the environment.

    Returns
    -------
    Settings
        Application settings instance

    Raises
    ------
    ConfigurationError
        If required credentials or endpoints are missing
    """
    try:
        return Settings()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


class EnvironmentProvider(Provider):
    """
    Provider for environment configuration.
    """

    component = "environment"
    scope = Scope.APP

    @provide
    def get_environment(self) -> Settings:
        """
        Provide application settings.

        Returns
        -------
        Settings
            Application settings instance
        """
        return load_settings()
