"""Configuration package for the Yieldly service."""

from .settings import YieldlySettings, get_settings

__all__ = ["YieldlySettings", "get_settings"]
