"""Input/output helpers for continuation results."""

from arcpath.utils.io.pathlog import PathLogWriter

__all__ = ["PathLogWriter"]
