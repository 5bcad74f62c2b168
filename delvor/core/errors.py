"""Exception types raised by the triangulation and diagram layers."""
from __future__ import annotations


class DelvorError(Exception):
    """Base class for errors raised by delvor."""


class DuplicateSiteError(DelvorError, ValueError):
    """A site within ``CLOSE`` of the inserted point already exists."""

    def __init__(self, point):
        super().__init__(f"site {point} already present")
        self.point = point


class UnknownSiteError(DelvorError, LookupError):
    """The query needs an existing site and the point is not one."""

    def __init__(self, point):
        super().__init__(f"{point} is not a site of the triangulation")
        self.point = point


class MeshConsistencyError(DelvorError, RuntimeError):
    """A structural invariant of the triangle mesh does not hold."""


__all__ = ['DelvorError', 'DuplicateSiteError', 'UnknownSiteError', 'MeshConsistencyError']
