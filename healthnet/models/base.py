"""Shared metadata for all HealthNet tables."""

from sqlalchemy import MetaData

metadata = MetaData()
