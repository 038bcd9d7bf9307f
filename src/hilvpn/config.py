"""Store global configuration."""

from __future__ import annotations

import logging
import re
from pathlib import Path

logger = logging.getLogger("hilvpn")

# Settings file read by the privileged helper at startup
PRIVOP_CONFIG_PATH = Path("/etc/hil-vpn/privop.yaml")
# Directory containing the hil-vpn-hook-up/down helper scripts
LIBEXEC_DIR = Path("/usr/libexec/hil-vpn")
# Configuration file paths/directories for openvpn-server@.service
OPENVPN_CONFIG_DIR = Path("/etc/openvpn/server")
OPENVPN_BIN = "/usr/sbin/openvpn"
# Seconds to wait for the openvpn key generation. None disables the timeout.
KEYGEN_TIMEOUT: float | None = 30.0

# Prefix of the key files, also used by the hook scripts to find them.
KEY_FILE_PREFIX = "hil-vpn-"
SERVICE_PREFIX = "openvpn-server@"
# openvpn infers the device type from the prefix.
INTERFACE_PREFIX = "tap"
# IFNAMSIZ is 16 including the terminating NUL.
INTERFACE_NAME_MAX = 15

# Match valid VPN names. These end up in file paths and systemd unit names.
VPN_NAME_RE = re.compile(r"[A-Za-z0-9_-]{1,64}")

# Unprivileged user/group openvpn drops to after startup.
OPENVPN_USER = "nobody"
OPENVPN_GROUP = "nobody"

LOG_FORMAT = (
    "%(asctime)s(File:%(name)s,Line:%(lineno)d,"
    "%(funcName)s) - %(levelname)s - %(message)s"
)
LOG_DATE_FORMAT = "%m/%d/%Y %H:%M:%S %p"
