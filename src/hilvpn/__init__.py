"""Provision OpenVPN server configurations for hil-vpn."""

__version__ = "0.1.0"
