"""Pydantic models for the weather application."""

from .city import City
from .weather import Weather

__all__ = ["City", "Weather"]
