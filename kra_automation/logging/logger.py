import logging
import sys


class Log:
    """Process-wide logger; every line carries the worker id so sharded runs can be told apart."""

    _logger: logging.Logger = logging.getLogger("kra_automation")

    @classmethod
    def configure(cls, log_level: str, worker_id: str = "worker-1") -> None:
        """Set the level and attach a stdout handler once."""
        cls._logger.setLevel(log_level.upper())
        if not cls._logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(
                logging.Formatter(f"%(asctime)s [%(levelname)s] [{worker_id}] %(message)s")
            )
            cls._logger.addHandler(handler)

    @classmethod
    def info(cls, message: str, **kwargs: object) -> None:
        cls._logger.info(message, extra=kwargs)

    @classmethod
    def error(cls, message: str, **kwargs: object) -> None:
        cls._logger.error(message, extra=kwargs)

    @classmethod
    def exception(cls, message: str, **kwargs: object) -> None:
        """Error with the active exception's traceback; only valid inside an except block."""
        cls._logger.exception(message, extra=kwargs)

    @classmethod
    def warning(cls, message: str, **kwargs: object) -> None:
        cls._logger.warning(message, extra=kwargs)

    @classmethod
    def debug(cls, message: str, **kwargs: object) -> None:
        cls._logger.debug(message, extra=kwargs)
