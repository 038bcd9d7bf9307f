"""External services configured by the privileged helper."""
