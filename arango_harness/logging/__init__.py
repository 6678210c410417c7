"""Structured logging setup."""

from .logging import LogManager, bind_scenario, clear_scenario

__all__ = ["LogManager", "bind_scenario", "clear_scenario"]
