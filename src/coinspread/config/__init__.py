# src/coinspread/config/__init__.py
"""
Configuration Module

Provides centralized configuration management using Pydantic Settings.
Values come from environment variables and an optional .env file.
"""

from coinspread.config.settings import KNOWN_SOURCES, Settings, settings

__all__ = ["KNOWN_SOURCES", "Settings", "settings"]
