from __future__ import annotations

import pathlib

import pytest

from hilvpn.models.settings import PrivopSettings
from hilvpn.services.openvpn import OpenVpnProvisioner

STATIC_KEY = (
    b"#\n"
    b"# 2048 bit OpenVPN static key\n"
    b"#\n"
    b"-----BEGIN OpenVPN Static key V1-----\n"
    b"6f1a3c0e9d2b7a45c8e1f0b3d6a9c2e5\n"
    b"b4d7e0a3c6f9b2e5d8a1c4f7e0b3d6a9\n"
    b"-----END OpenVPN Static key V1-----\n"
)


class FakeKeyGenerator:
    """Return a fixed key instead of running openvpn."""

    def __init__(self, key: bytes = STATIC_KEY) -> None:
        self.key = key
        self.calls = 0

    def generate_key(self) -> bytes:
        self.calls += 1
        return self.key


@pytest.fixture
def static_key() -> bytes:
    return STATIC_KEY


@pytest.fixture
def config_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    path = tmp_path.joinpath("etc", "openvpn", "server")
    path.mkdir(parents=True)
    return path


@pytest.fixture
def settings(config_dir: pathlib.Path) -> PrivopSettings:
    return PrivopSettings(
        libexec_dir=pathlib.Path("/usr/libexec/hil-vpn"),
        config_dir=config_dir,
    )


@pytest.fixture
def key_generator() -> FakeKeyGenerator:
    return FakeKeyGenerator()


@pytest.fixture
def provisioner(
    settings: PrivopSettings,
    key_generator: FakeKeyGenerator,
) -> OpenVpnProvisioner:
    return OpenVpnProvisioner(settings, key_generator)
