"""Warehouse — path-scoped access control and sync tracking for mirrored repositories.

The package provides two engines:
1. Permission resolution — who may reach which path of a repository
2. Sync state tracking — how far the local changeset mirror lags the backend
"""

__version__ = "0.1.0"
