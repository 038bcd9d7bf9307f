"""Manage interface names."""

from __future__ import annotations

import base64
import logging
import secrets

from hilvpn import config
from hilvpn.exceptions import RandomSourceError

logger = logging.getLogger("hilvpn")

INTERFACE_ID_LENGTH = config.INTERFACE_NAME_MAX - len(config.INTERFACE_PREFIX)


def new_interface_name() -> str:
    """Return a random 12 character base64(url) encoded string.

    Interface names are limited to 15 characters, so the identifier is used for
    collision avoidance between concurrently provisioned tunnels. Interfaces
    are still prefixed with 'tap' for readability, and so openvpn can infer
    the device type.

    12 base64 characters (about 9 bytes) isn't a reasonable amount of entropy
    for cryptographic purposes. It doesn't have to be: the value needn't be
    secret, and a collision only means the second tunnel fails to start. A
    caller able to trigger that already has root.
    """
    try:
        data = secrets.token_bytes(16)
    except (OSError, NotImplementedError) as err:
        logger.critical("Unable to read from the system random source.")
        msg = f"Generating interface name: {err}"
        raise RandomSourceError(msg) from err

    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")[
        :INTERFACE_ID_LENGTH
    ]
