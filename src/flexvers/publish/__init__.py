"""Tag publishing."""

from __future__ import annotations

from flexvers.publish.publisher import TagRecord, publish

__all__ = ["TagRecord", "publish"]
