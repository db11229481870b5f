"""Configuration module for remote_client."""

from remote_client.config.settings import Settings

__all__ = ["Settings"]
