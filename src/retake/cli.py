"""CLI interface for Retake"""

import logging
from pathlib import Path
from typing import Optional, Tuple

import click
import yaml
from pydantic import ValidationError

from retake.domain.config import HandlerConfig, RetryConfig
from retake.domain.models.request import Request, Response
from retake.infrastructure.config.config_manager import ConfigManager, ConfigurationError
from retake.infrastructure.handlers.base import Handler
from retake.infrastructure.handlers.factory import HandlerFactory
from retake.infrastructure.retry import RetryingHandler

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    logging.getLogger().setLevel(level)


def _die(message: str, verbose: bool = False, exc: Optional[Exception] = None) -> None:
    """Exit with a user-friendly error message"""
    if exc is not None:
        logger.error(message, exc_info=verbose)
    else:
        logger.error(message)
    raise click.ClickException(message)


def parse_headers(headers: Tuple[str, ...]) -> dict:
    """Parse "Name: value" pairs given on the command line

    Raises:
        click.BadParameter: If a header has no colon
    """
    result = {}
    for header in headers:
        name, sep, value = header.partition(":")
        if not sep or not name.strip():
            raise click.BadParameter(f"Invalid header: {header!r}", param_hint="--header")
        result[name.strip()] = value.strip()
    return result


def _create_delegate(handler_config: HandlerConfig) -> Handler:
    """Create the wrapped handler from its configuration"""
    logger.info(f"Using handler: {handler_config.type}")
    return HandlerFactory.create(
        handler_config.type,
        handler_config.model_dump(exclude={"type"}),
    )


def _output_response(response: Response) -> None:
    click.echo(response.status_line())
    for name, value in response.headers.items():
        click.echo(f"{name}: {value}")
    click.echo("")
    click.echo(response.text)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to .retake.yml config file",
)
@click.pass_context
def cli(ctx, verbose: bool, config: Path):
    """Retake - retry transient failures of a request handler"""
    ctx.ensure_object(dict)
    setup_logging(verbose)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose


@cli.command()
@click.argument("uri", default="/")
@click.option("--method", "-X", default="GET", show_default=True, help="Request method")
@click.option("--header", "-H", "headers", multiple=True, help="Request header, 'Name: value'")
@click.option("--data", "-d", default="", help="Request body")
@click.option(
    "--handler",
    "handler_type",
    type=click.Choice(["mock", "text", "http"], case_sensitive=False),
    help="Delegate handler. Overrides config.",
)
@click.option("--url", help="Target base URL for the http handler. Overrides config.")
@click.option("--max-attempts", type=int, help="Total attempts, first one included. Overrides config.")
@click.option("--delay", type=float, help="Delay between attempts in seconds. Overrides config.")
@click.pass_context
def act(
    ctx,
    uri: str,
    method: str,
    headers: Tuple[str, ...],
    data: str,
    handler_type: Optional[str],
    url: Optional[str],
    max_attempts: Optional[int],
    delay: Optional[float],
):
    """Send one request through the retrying handler.

    URI: Request path (default: /)
    """
    verbose = ctx.obj.get("verbose", False)
    request = Request(
        method=method.upper(),
        uri=uri,
        headers=parse_headers(headers),
        body=data.encode("utf-8"),
    )

    try:
        config_manager = ConfigManager(config_path=ctx.obj.get("config_path"))
        retry_config = config_manager.get_retry_config()
        handler_config = config_manager.get_handler_config()

        # CLI overrides go through the same validation as the file
        retry_overrides = {"max_attempts": max_attempts, "delay": delay}
        retry_config = RetryConfig.model_validate(
            {**retry_config.model_dump(), **{k: v for k, v in retry_overrides.items() if v is not None}}
        )
        handler_overrides = {"type": handler_type and handler_type.lower(), "url": url}
        handler_config = HandlerConfig.model_validate(
            {**handler_config.model_dump(), **{k: v for k, v in handler_overrides.items() if v is not None}}
        )

        handler = RetryingHandler.from_config(retry_config, _create_delegate(handler_config))
        logger.info(f"Sending {request.method} {request.uri} via {handler!r}")
        response = handler.act(request)
    except ConfigurationError as e:
        _die(str(e), verbose=verbose, exc=e)
    except ValidationError as e:
        _die(f"Invalid option: {e}", verbose=verbose, exc=e)
    except Exception as e:
        _die(f"Request failed: {e}", verbose=verbose, exc=e)

    _output_response(response)


@cli.command()
@click.pass_context
def config(ctx):
    """Show the effective configuration as YAML."""
    verbose = ctx.obj.get("verbose", False)
    try:
        config_manager = ConfigManager(config_path=ctx.obj.get("config_path"))
    except ConfigurationError as e:
        _die(str(e), verbose=verbose, exc=e)
    click.echo(yaml.safe_dump(config_manager.config.model_dump(), sort_keys=False).rstrip())


def main():
    """Main entry point"""
    cli(obj={})


if __name__ == "__main__":
    main()
