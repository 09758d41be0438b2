"""Database models and utilities."""

from app.db import models

__all__ = ["models"]
