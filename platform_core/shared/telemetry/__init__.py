"""Shared telemetry: logging setup."""

from platform_core.shared.telemetry.logging import setup_logging

__all__ = ["setup_logging"]
