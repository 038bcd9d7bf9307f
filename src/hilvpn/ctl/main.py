#!/usr/bin/env python3
"""Command line entrypoint of the privileged helper."""

import logging
import pathlib
import sys
from logging.handlers import RotatingFileHandler

import typer
from pydantic import ValidationError
from typing_extensions import Annotated

from hilvpn import config
from hilvpn.exceptions import PrivopError
from hilvpn.models.settings import PrivopSettings, load_settings
from hilvpn.services.openvpn import OpenVpnProvisioner

# LOGGER
# Get logger
logger = logging.getLogger()
# Name of the handlers added by this module, so they can be replaced.
HANDLER_NAME = "hilvpn"

app = typer.Typer(
    help="hil-vpn privileged OpenVPN configuration helper.",
    no_args_is_help=True,
)


def setup_logging(settings: PrivopSettings, verbose: bool = False) -> None:  # noqa: FBT001, FBT002
    """Configure the root logger."""
    for handler in logger.handlers[:]:
        if handler.get_name() == HANDLER_NAME:
            logger.removeHandler(handler)
            handler.close()

    logger.setLevel(level=logging.DEBUG if verbose else settings.log_level)
    formatter = logging.Formatter(
        fmt=config.LOG_FORMAT,
        datefmt=config.LOG_DATE_FORMAT,
    )
    streamhandler = logging.StreamHandler(sys.stderr)
    streamhandler.set_name(HANDLER_NAME)
    streamhandler.setFormatter(formatter)
    logger.addHandler(streamhandler)
    if settings.log_file is not None:
        rothandler = RotatingFileHandler(
            settings.log_file,
            maxBytes=100000,
            backupCount=5,
        )
        rothandler.set_name(HANDLER_NAME)
        rothandler.setFormatter(formatter)
        logger.addHandler(rothandler)


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Annotated[
        pathlib.Path,
        typer.Option("--config", help="Settings file."),
    ] = config.PRIVOP_CONFIG_PATH,
    verbose: Annotated[bool, typer.Option("--verbose", "-v")] = False,  # noqa: FBT002
) -> None:
    """Load the settings and configure logging."""
    try:
        settings = load_settings(config_path)
    except PrivopError as err:
        typer.echo(str(err), err=True)
        raise typer.Exit(code=1) from err

    setup_logging(settings, verbose)
    ctx.obj = settings


@app.command()
def create(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Name of the VPN.")],
    vlan: Annotated[int, typer.Argument(help="VLAN to attach the VPN to.")],
    port: Annotated[int, typer.Argument(help="UDP port openvpn listens on.")],
) -> None:
    """Create the OpenVPN configuration and static key for a VPN."""
    settings: PrivopSettings = ctx.obj
    try:
        provisioner = OpenVpnProvisioner(settings)
        cfg = provisioner.create(name, vlan, port)
    except ValidationError as err:
        logger.error("Invalid arguments: %s", err)  # noqa: TRY400
        raise typer.Exit(code=1) from err
    except PrivopError as err:
        logger.error("Failed to create VPN '%s': %s", name, err)  # noqa: TRY400
        raise typer.Exit(code=1) from err

    typer.echo(provisioner.config_path(cfg.name))
    typer.echo(cfg.service_name)


if __name__ == "__main__":
    app()
