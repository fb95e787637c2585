# ABOUTME: Loguru configuration for the cascade kernel
# ABOUTME: Provides unified logging setup with console colorization and optional file output

import sys
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

from loguru import logger
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

from cascade.config.settings import CoreSettings, get_settings

if TYPE_CHECKING:
    from cascade.application import Application


class LoggerConfig(BaseModel):
    """Configuration for loguru logger."""

    # Console output configuration
    console_enabled: bool = True
    console_level: str = "INFO"
    console_format: str = (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{extra[name]}</cyan> | "
        "<level>{message}</level>"
    )
    console_colorize: bool = True
    console_backtrace: bool = True
    console_diagnose: bool = False
    console_serialize: bool = False

    # File output configuration
    file_enabled: bool = False
    file_level: str = "DEBUG"
    file_path: Union[str, Path] = "logs/cascade.log"
    file_format: str = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[name]} | {message}"
    file_rotation: str = "100 MB"
    file_retention: str = "30 days"
    file_compression: str = "gz"
    file_serialize: bool = False

    # Performance settings
    enqueue: bool = False
    catch: bool = True


class LoggingSettings(BaseSettings):
    """Logging settings that can be configured via environment variables."""

    log_level: str = Field(default="INFO", validation_alias="CASCADE_LOG_LEVEL")
    log_format: str = Field(default="txt", validation_alias="CASCADE_LOG_FORMAT")
    log_file_enabled: bool = Field(default=False, validation_alias="CASCADE_LOG_FILE_ENABLED")
    log_file_path: str = Field(default="logs/cascade.log", validation_alias="CASCADE_LOG_FILE_PATH")
    log_console_colorize: bool = Field(default=True, validation_alias="CASCADE_LOG_CONSOLE_COLORIZE")


def setup_logging(config: Optional[LoggerConfig] = None) -> None:
    """
    Setup loguru logger with the specified configuration.

    Args:
        config: Logger configuration. If None, configuration is read from the environment.
    """
    if config is None:
        settings = LoggingSettings()
        config = LoggerConfig(
            console_level=settings.log_level.upper(),
            console_colorize=settings.log_console_colorize,
            file_enabled=settings.log_file_enabled,
            file_path=settings.log_file_path,
            file_level=settings.log_level.upper(),
            file_serialize=settings.log_format.lower() == "json",
        )

    logger.remove()
    logger.configure(extra={"name": "cascade"})

    if config.console_enabled:
        logger.add(
            sys.stderr,
            level=config.console_level,
            format=config.console_format,
            colorize=config.console_colorize,
            backtrace=config.console_backtrace,
            diagnose=config.console_diagnose,
            serialize=config.console_serialize,
            enqueue=config.enqueue,
            catch=config.catch,
        )

    if config.file_enabled:
        log_path = Path(config.file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        logger.add(
            config.file_path,
            level=config.file_level,
            format=config.file_format,
            rotation=config.file_rotation,
            retention=config.file_retention,
            compression=config.file_compression,
            serialize=config.file_serialize,
            enqueue=config.enqueue,
            catch=config.catch,
        )


def setup_request_logging(app: "Application") -> None:
    """
    Tag every log record emitted during a request with that request's method and path.

    Requires the application to run with context storage enabled; outside of a
    request (or with storage disabled) records are left untouched.

    Args:
        app: Application whose current context should be attached to log records.
    """

    def add_request_info(record) -> None:
        ctx = app.current_context
        if ctx is not None:
            record["extra"]["method"] = ctx.method
            record["extra"]["path"] = ctx.path

    logger.configure(patcher=add_request_info)


def get_logger(name: str):
    """
    Get a logger instance with the specified name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance bound to the specified name
    """
    return logger.bind(name=name)


def configure_for_testing() -> None:
    """
    Configure logging for testing environment.

    The sink resolves `sys.stdout` on every write, so output follows whatever
    stream the test runner has installed at that moment.
    """
    logger.remove()
    logger.configure(extra={"name": "cascade"})
    logger.add(
        lambda message: sys.stdout.write(message),
        level="DEBUG",
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <5}</level> | <cyan>{extra[name]}</cyan> | <level>{message}</level>",
        colorize=True,
        backtrace=False,
        diagnose=False,
        enqueue=False,
        catch=False,
    )


def configure_for_production(settings: Optional[CoreSettings] = None) -> None:
    """Configure logging for production: plain console plus a serialized log file."""
    settings = settings or get_settings()
    config = LoggerConfig(
        console_level=settings.LOG_LEVEL,
        console_colorize=False,
        console_backtrace=False,
        file_enabled=True,
        file_level=settings.LOG_LEVEL,
        file_serialize=True,
    )
    setup_logging(config)


def configure_for_development(settings: Optional[CoreSettings] = None) -> None:
    """Configure logging for development: colorized console, DEBUG when `settings.DEBUG` is on."""
    settings = settings or get_settings()
    config = LoggerConfig(
        console_level="DEBUG" if settings.DEBUG else settings.LOG_LEVEL,
        console_colorize=True,
        console_backtrace=True,
        console_diagnose=True,
        file_enabled=False,
    )
    setup_logging(config)


def configure_logging(settings: Optional[CoreSettings] = None) -> None:
    """
    Configure logging for the environment named by `settings.ENV`.

    `production` and `development` use the matching helper, `test` uses
    `configure_for_testing`. Any other environment (e.g. `staging`) gets an
    uncolored console at `settings.LOG_LEVEL`, serialized to JSON when
    `settings.LOG_FORMAT` is `json`.

    Args:
        settings: Settings to read. Defaults to `get_settings()`.
    """
    settings = settings or get_settings()
    env = settings.ENV.lower()

    if env == "production":
        configure_for_production(settings)
    elif env == "development":
        configure_for_development(settings)
    elif env in ("test", "testing"):
        configure_for_testing()
    else:
        setup_logging(
            LoggerConfig(
                console_level=settings.LOG_LEVEL,
                console_colorize=False,
                console_serialize=settings.LOG_FORMAT == "json",
            )
        )
