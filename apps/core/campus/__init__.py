# ======================================================================
# PATH: apps/core/campus/__init__.py
# ======================================================================
from .exceptions import CampusResolutionError
from .isolation import campus_filter, effective_campus_id, require_campus_id
from .resolver import resolve_requested_campus_id

__all__ = [
    "CampusResolutionError",
    "campus_filter",
    "effective_campus_id",
    "require_campus_id",
    "resolve_requested_campus_id",
]
