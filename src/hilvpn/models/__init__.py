"""Data structures used by the privileged helper."""
