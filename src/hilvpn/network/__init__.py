"""Helpers for Linux network configuration."""
