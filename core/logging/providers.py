import logging
import sys
from dishka import Provider, provide, Scope


LOGGER_NAME = "token_holders"


def configure_logging(level: int | None = None) -> logging.Logger:
    """
    Configure root logging once and return the application logger.

    Parameters
    ----------
    level : int | None
        Level of the application logger. When omitted, the level set by an
        earlier call (or INFO) is kept.

    Returns
    -------
    logging.Logger
        Configured logger that writes to console
    """
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=logging.INFO if level is None else level,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            handlers=[
                logging.StreamHandler(sys.stdout)
            ]
        )

    logger = logging.getLogger(LOGGER_NAME)
    if level is not None:
        logger.setLevel(level)
    elif logger.level == logging.NOTSET:
        logger.setLevel(logging.INFO)
    return logger


class LoggerProvider(Provider):
    """
    Provider for logging configuration and logger instances.

    Configures logging to output to console (stdout) with INFO level.
    """
    component = "logger"
    @provide(scope=Scope.APP)
    def get_logger(self) -> logging.Logger:
        """
        Provide configured logger instance.

        Returns
        -------
        logging.Logger
            Configured logger that writes to console
        """
        return configure_logging()
