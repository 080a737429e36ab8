"""Utility modules."""

from cloudfs_core.utils.blocking import run_blocking

__all__ = ["run_blocking"]
