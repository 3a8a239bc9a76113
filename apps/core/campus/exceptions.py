# ======================================================================
# PATH: apps/core/campus/exceptions.py
# ======================================================================
from __future__ import annotations


class CampusResolutionError(Exception):
    """
    Requested-campus resolution failures are explicit & ops-friendly.

    code:
      - campus_invalid   (not an integer id)
      - campus_not_found
      - campus_inactive
    """

    def __init__(
        self,
        *,
        code: str,
        message: str,
        http_status: int = 400,
    ):
        super().__init__(message)
        self.code = str(code)
        self.message = str(message)
        self.http_status = int(http_status)
