"""Error taxonomy for the rendering core.

Every error is a ``ValueError`` so callers that only guard against bad input
keep working. "No hit", "outside the spotlight cone" and "total internal
reflection" are ordinary results and never raise.
"""

from __future__ import annotations


class RenderError(ValueError):
    """Base class for failures that abort a cast or a whole render."""


class GeometryError(RenderError):
    """Zero ray direction, non-positive radius/axis or a degenerate basis."""


class MeshIndexError(RenderError, IndexError):
    """A face refers to a vertex, normal or texcoord that does not exist."""


class MissingMaterialError(RenderError):
    """A shape has no material bound, so it cannot be shaded."""
