"""Helpers for joining profile display fields into other records."""

from collections.abc import Mapping
from typing import Any

from sqlalchemy.sql.elements import Label
from sqlalchemy.sql.expression import FromClause

from healthnet.schemas.profiles import ProfileSummary

SUMMARY_FIELDS = ("id", "full_name", "headline", "user_type", "profile_photo")


def profile_summary_columns(profile: FromClause, prefix: str) -> list[Label[Any]]:
    """Select the summary fields of a (possibly aliased) profiles table under a prefix."""
    return [profile.c[field].label(f"{prefix}__{field}") for field in SUMMARY_FIELDS]


def profile_summary(row: Mapping[str, Any], prefix: str) -> ProfileSummary | None:
    """Build a ProfileSummary from prefixed columns, or None if the join was empty."""
    if row.get(f"{prefix}__id") is None:
        return None
    return ProfileSummary(**{field: row[f"{prefix}__{field}"] for field in SUMMARY_FIELDS})


def strip_prefixed(row: Mapping[str, Any], *prefixes: str) -> dict[str, Any]:
    """Copy a row mapping without the columns belonging to joined records."""
    return {
        key: value
        for key, value in row.items()
        if not any(key.startswith(f"{prefix}__") for prefix in prefixes)
    }
