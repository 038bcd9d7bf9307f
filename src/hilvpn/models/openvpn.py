"""OpenVPN server configuration data structure."""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict, Field, field_validator

from hilvpn import config

logger = logging.getLogger("hilvpn")


def key_file_name(name: str) -> str:
    """Return the name of the static key file for the named vpn."""
    return f"{config.KEY_FILE_PREFIX}{name}.key"


def service_name(name: str) -> str:
    """Return the name of the systemd service for the named vpn."""
    return f"{config.SERVICE_PREFIX}{name}"


class OpenVpnConfig(BaseModel):
    """Define an OpenVPN server configuration and its static key."""

    model_config = ConfigDict(frozen=True)

    name: str
    # Raw output of `openvpn --genkey`. Never decoded or logged.
    key: bytes = Field(repr=False)
    port: int = Field(ge=0, le=65535)
    vlan: int = Field(ge=0, le=65535)

    @field_validator("name")
    @classmethod
    def _validate_name(cls, v: str) -> str:
        if not config.VPN_NAME_RE.fullmatch(v):
            err = f"VPN name '{v}' is invalid"
            raise ValueError(err)
        return v

    @property
    def key_file_name(self) -> str:
        """Return the key file name referenced by the configuration."""
        return key_file_name(self.name)

    @property
    def service_name(self) -> str:
        """Return the systemd unit that runs this configuration."""
        return service_name(self.name)
