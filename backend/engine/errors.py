from __future__ import annotations


class PointStoreError(RuntimeError):
    """
    The backing point store could not be read (missing file, parse failure, ...).

    Distinct from "no points found": callers must not turn this into an empty result.
    """
