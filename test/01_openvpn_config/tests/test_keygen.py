from __future__ import annotations

import subprocess
from typing import TYPE_CHECKING, Any

import pytest

from hilvpn.exceptions import KeyGenerationError
from hilvpn.models.settings import PrivopSettings
from hilvpn.services import openvpn

if TYPE_CHECKING:
    import pathlib


class TestOpenVpnKeyGenerator:
    """Test static key generation with the openvpn binary."""

    def test_captures_stdout(
        self,
        monkeypatch: pytest.MonkeyPatch,
        static_key: bytes,
    ) -> None:
        """Test the key is the unparsed stdout of openvpn --genkey."""
        calls: list[tuple[list[str], dict[str, Any]]] = []

        def run(cmd: list[str], **kwargs: Any) -> subprocess.CompletedProcess[bytes]:  # noqa: ANN401
            calls.append((cmd, kwargs))
            return subprocess.CompletedProcess(cmd, 0, stdout=static_key, stderr=b"")

        monkeypatch.setattr(subprocess, "run", run)

        key = openvpn.OpenVpnKeyGenerator("/usr/sbin/openvpn", timeout=5).generate_key()

        assert key == static_key
        assert len(calls) == 1
        cmd, kwargs = calls[0]
        assert cmd == ["/usr/sbin/openvpn", "--genkey", "--secret", "/dev/fd/1"]
        assert kwargs["check"] is True
        assert kwargs["capture_output"] is True
        assert kwargs["timeout"] == 5

    def test_non_zero_exit(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test a failing openvpn is reported with its exit status and stderr."""

        def run(cmd: list[str], **_: Any) -> subprocess.CompletedProcess[bytes]:  # noqa: ANN401
            raise subprocess.CalledProcessError(
                1,
                cmd,
                output=b"",
                stderr=b"Options error: --secret fails with '/dev/fd/1'\n",
            )

        monkeypatch.setattr(subprocess, "run", run)

        with pytest.raises(KeyGenerationError, match="exit status 1: Options error"):
            openvpn.OpenVpnKeyGenerator().generate_key()

    def test_missing_binary(self, tmp_path: pathlib.Path) -> None:
        """Test a missing openvpn binary is reported as a KeyGenerationError."""
        generator = openvpn.OpenVpnKeyGenerator(str(tmp_path.joinpath("openvpn")))

        with pytest.raises(KeyGenerationError, match="Error invoking openvpn"):
            generator.generate_key()

    def test_timeout(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test a hanging openvpn is reported as a KeyGenerationError."""

        def run(cmd: list[str], **kwargs: Any) -> subprocess.CompletedProcess[bytes]:  # noqa: ANN401
            raise subprocess.TimeoutExpired(cmd, kwargs["timeout"])

        monkeypatch.setattr(subprocess, "run", run)

        with pytest.raises(KeyGenerationError, match="timed out after 2"):
            openvpn.OpenVpnKeyGenerator(timeout=2).generate_key()

    def test_empty_output(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test an empty key is rejected."""

        def run(cmd: list[str], **_: Any) -> subprocess.CompletedProcess[bytes]:  # noqa: ANN401
            return subprocess.CompletedProcess(cmd, 0, stdout=b"", stderr=b"")

        monkeypatch.setattr(subprocess, "run", run)

        with pytest.raises(KeyGenerationError, match="no key material"):
            openvpn.OpenVpnKeyGenerator().generate_key()

    def test_provisioner_uses_settings(self, config_dir: pathlib.Path) -> None:
        """Test the default generator is built from the settings."""
        settings = PrivopSettings(
            config_dir=config_dir,
            openvpn_bin="/opt/openvpn/sbin/openvpn",
            keygen_timeout=None,
        )

        provisioner = openvpn.OpenVpnProvisioner(settings)

        assert isinstance(provisioner.key_generator, openvpn.OpenVpnKeyGenerator)
        assert provisioner.key_generator.openvpn_bin == "/opt/openvpn/sbin/openvpn"
        assert provisioner.key_generator.timeout is None
