"""Error handling for CLI commands."""

import sys
import traceback
from typing import Optional

import click
from pydantic import ValidationError as PydanticValidationError

from protracker.cli.utils.formatters import format_error, format_warning
from protracker.exceptions import (
    ExternalServiceError,
    MissingRateError,
    ProTrackerError,
    StorageError,
    ValidationError,
)


class ConfigurationError(ProTrackerError):
    """Error related to configuration issues."""

    pass


def _report(title: str, error: ProTrackerError) -> None:
    click.echo(format_error(f"{title}: {error.message}"))
    if error.recovery_hint:
        click.echo(format_warning(f"Hint: {error.recovery_hint}"))


def handle_cli_error(error: Exception, debug: bool = False) -> int:
    """
    Handle CLI errors with user-friendly messages.

    Args:
        error: The exception that occurred
        debug: Whether to show full stack trace

    Returns:
        Exit code (1-6 for the application's errors)
    """
    if isinstance(error, ConfigurationError):
        _report("Configuration Error", error)
        return 1

    elif isinstance(error, PydanticValidationError):
        click.echo(format_error("Configuration Error: invalid settings"))
        for detail in error.errors():
            location = ".".join(str(part) for part in detail["loc"])
            click.echo(f"  {location}: {detail['msg']}")
        click.echo(format_warning("Hint: Check the environment variables and .env file"))
        return 1

    elif isinstance(error, ExternalServiceError):
        _report("Service Error", error)
        return 2

    elif isinstance(error, ValidationError):
        _report("Validation Error", error)
        return 3

    elif isinstance(error, MissingRateError):
        _report("Missing Exchange Rate", error)
        return 4

    elif isinstance(error, StorageError):
        _report("Storage Error", error)
        return 5

    elif isinstance(error, ProTrackerError):
        _report("Error", error)
        return 6

    # Handle click.Abort (user cancellation)
    elif isinstance(error, click.Abort):
        click.echo(format_warning("\nOperation cancelled by user"))
        return 130  # Standard exit code for SIGINT

    else:
        click.echo(format_error(f"Unexpected Error: {type(error).__name__}"))
        click.echo(str(error))

        if debug:
            click.echo("\nFull stack trace:")
            click.echo(
                "".join(
                    traceback.format_exception(
                        type(error), error, error.__traceback__
                    )
                )
            )
        else:
            click.echo(format_warning("\nRun with --debug flag for full stack trace"))

        return 255


def with_error_handling(debug: bool = False):
    """
    Context manager adding standardized error handling to CLI commands.

    Args:
        debug: Whether to show full stack traces

    Example:
        @click.command()
        @click.pass_obj
        def my_command(obj):
            with with_error_handling(obj["debug"]):
                # Command implementation
                pass
    """

    class ErrorHandler:
        """Context manager for error handling."""

        def __init__(self, show_debug: bool):
            self.show_debug = show_debug

        def __enter__(self):
            return self

        def __exit__(self, exc_type, exc_val, exc_tb):
            if exc_val is None or isinstance(
                exc_val, (click.exceptions.Exit, click.ClickException, SystemExit)
            ):
                return False
            exit_code = handle_cli_error(exc_val, self.show_debug)
            sys.exit(exit_code)

    return ErrorHandler(debug)
