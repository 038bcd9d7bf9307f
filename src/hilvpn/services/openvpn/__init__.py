"""Generates OpenVPN server configurations and their static keys."""

from __future__ import annotations

import contextlib
import logging
import os
import pathlib
import subprocess
from typing import TYPE_CHECKING, Any, BinaryIO, Callable, Protocol

from jinja2 import Environment, FileSystemLoader, StrictUndefined, Template
from jinja2 import TemplateError as Jinja2TemplateError

from hilvpn import config
from hilvpn.exceptions import (
    KeyGenerationError,
    PathCollisionError,
    TemplateError,
    WriteError,
)
from hilvpn.models.openvpn import OpenVpnConfig, key_file_name
from hilvpn.network.interface import new_interface_name

if TYPE_CHECKING:
    from hilvpn.models.settings import PrivopSettings

logger = logging.getLogger("hilvpn")

BASE_DIR = pathlib.Path(__file__).parent
TEMPLATES_DIR = BASE_DIR.joinpath("templates")
# Plain text output, HTML escaping would mangle the hook command line.
TEMPLATES_ENV = Environment(  # noqa: S701
    loader=FileSystemLoader(TEMPLATES_DIR),
    autoescape=False,
    keep_trailing_newline=True,
    undefined=StrictUndefined,
)
CONFIG_TEMPLATE = "openvpn.conf.j2"


class KeyGenerator(Protocol):
    """Source of static key material."""

    def generate_key(self) -> bytes:
        """Return a new static key."""
        ...


class OpenVpnKeyGenerator:
    """Generate static keys with `openvpn --genkey`."""

    def __init__(
        self,
        openvpn_bin: str = config.OPENVPN_BIN,
        timeout: float | None = config.KEYGEN_TIMEOUT,
    ) -> None:
        self.openvpn_bin = openvpn_bin
        self.timeout = timeout

    def generate_key(self) -> bytes:
        """Run openvpn and return everything it writes to stdout."""
        cmd = [self.openvpn_bin, "--genkey", "--secret", "/dev/fd/1"]
        logger.debug("Generating static key: %s", " ".join(cmd))
        try:
            proc = subprocess.run(  # noqa: S603
                cmd,
                capture_output=True,
                check=True,
                timeout=self.timeout,
            )
        except subprocess.CalledProcessError as err:
            stderr = err.stderr.decode(errors="replace").strip() if err.stderr else ""
            msg = f"Error invoking openvpn: exit status {err.returncode}"
            if stderr:
                msg = f"{msg}: {stderr}"
            raise KeyGenerationError(msg) from err
        except subprocess.TimeoutExpired as err:
            msg = f"Error invoking openvpn: timed out after {err.timeout} seconds"
            raise KeyGenerationError(msg) from err
        except OSError as err:
            msg = f"Error invoking openvpn: {err}"
            raise KeyGenerationError(msg) from err

        if not proc.stdout:
            msg = "Error invoking openvpn: no key material returned"
            raise KeyGenerationError(msg)

        return proc.stdout


def load_template(
    name: str = CONFIG_TEMPLATE,
    env: Environment = TEMPLATES_ENV,
) -> Template:
    """Load and compile a configuration template."""
    try:
        return env.get_template(name)
    except Jinja2TemplateError as err:
        msg = f"Invalid template '{name}': {err}"
        raise TemplateError(msg) from err


def _create_exclusive(path: pathlib.Path) -> int:
    """Create a file readable by the owner only, failing if it exists."""
    try:
        return os.open(
            path,
            os.O_CREAT | os.O_EXCL | os.O_WRONLY | os.O_CLOEXEC,
            0o600,
        )
    except FileExistsError as err:
        raise PathCollisionError(path) from err
    except OSError as err:
        raise WriteError(path, err.strerror or str(err)) from err


def _write(f: BinaryIO, data: bytes, path: pathlib.Path) -> None:
    try:
        f.write(data)
        f.flush()
        os.fsync(f.fileno())
    except OSError as err:
        raise WriteError(path, err.strerror or str(err)) from err


def _remove(path: pathlib.Path) -> None:
    logger.warning("Removing %s after failed provisioning.", path)
    try:
        path.unlink(missing_ok=True)
    except OSError:
        # The original error is still raised.
        logger.exception("Unable to remove %s.", path)


class OpenVpnProvisioner:
    """Create OpenVPN server configurations on disk.

    The configuration file and the static key are created together: either
    both exist afterwards or neither does. Existing files are never
    overwritten.
    """

    def __init__(
        self,
        settings: PrivopSettings,
        key_generator: KeyGenerator | None = None,
        interface_names: Callable[[], str] = new_interface_name,
    ) -> None:
        self.settings = settings
        self.key_generator = key_generator or OpenVpnKeyGenerator(
            settings.openvpn_bin,
            settings.keygen_timeout,
        )
        self.interface_names = interface_names
        # Fail at startup rather than halfway through writing a config.
        self.template = load_template()

    def config_path(self, name: str) -> pathlib.Path:
        """Return the path of the openvpn config for the named vpn."""
        return self.settings.config_dir.joinpath(f"{name}.conf")

    def key_path(self, name: str) -> pathlib.Path:
        """Return the path of the static key for the named vpn."""
        return self.settings.config_dir.joinpath(key_file_name(name))

    def new_config(self, name: str, vlan: int, port: int) -> OpenVpnConfig:
        """Generate a new openvpn config, including a static key."""
        # Validate before spawning openvpn.
        cfg = OpenVpnConfig(name=name, key=b"", port=port, vlan=vlan)
        return cfg.model_copy(update={"key": self.key_generator.generate_key()})

    def render(self, cfg: OpenVpnConfig) -> bytes:
        """Render the openvpn config document.

        Every call allocates a new interface name, so two renders of the same
        config differ in their `dev` line.
        """
        tpl_cfg: dict[str, Any] = {
            "interface_prefix": config.INTERFACE_PREFIX,
            "interface_id": self.interface_names(),
            "key_file": cfg.key_file_name,
            "port": cfg.port,
            "libexec_dir": self.settings.libexec_dir,
            "vlan": cfg.vlan,
            "user": config.OPENVPN_USER,
            "group": config.OPENVPN_GROUP,
        }
        try:
            return self.template.render(**tpl_cfg).encode("utf-8")
        except Jinja2TemplateError as err:
            msg = f"Unable to render '{self.template.name}': {err}"
            raise TemplateError(msg) from err

    def save(self, cfg: OpenVpnConfig) -> tuple[pathlib.Path, pathlib.Path]:
        """Save the openvpn config and its static key to disk."""
        cfg_path = self.config_path(cfg.name)
        key_path = self.key_path(cfg.name)

        with contextlib.ExitStack() as rollback:
            cfg_fd = _create_exclusive(cfg_path)
            rollback.callback(_remove, cfg_path)
            try:
                with os.fdopen(cfg_fd, "wb") as cfg_file:
                    key_fd = _create_exclusive(key_path)
                    rollback.callback(_remove, key_path)
                    with os.fdopen(key_fd, "wb") as key_file:
                        _write(cfg_file, self.render(cfg), cfg_path)
                        _write(key_file, cfg.key, key_path)
            except OSError as err:
                # Raised when closing either file.
                raise WriteError(cfg_path.parent, err.strerror or str(err)) from err
            rollback.pop_all()

        logger.info("Saved OpenVPN configuration %s and key %s.", cfg_path, key_path)
        return cfg_path, key_path

    def create(self, name: str, vlan: int, port: int) -> OpenVpnConfig:
        """Generate a new openvpn config and save it to disk."""
        logger.info(
            "Creating OpenVPN configuration '%s' for VLAN %s on port %s.",
            name,
            vlan,
            port,
        )
        cfg = self.new_config(name, vlan, port)
        self.save(cfg)
        return cfg
