"""Configuration package for the backend."""

from .config import Config

__all__ = ["Config"]
