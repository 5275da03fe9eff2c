# errors.py
"""Exceptions raised by the tree/alignment rendering core.

Every error subclasses both ``CladeViewError`` and the builtin a caller
would naturally catch (``ValueError``, ``LookupError``, ``IndexError``).
"""


class CladeViewError(Exception):
    """Base class for all cladeview failures."""


class TreeStructureError(CladeViewError, ValueError):
    """The parsed tree is not a single connected, rooted, acyclic graph."""


class AlignmentError(CladeViewError, ValueError):
    """The alignment has too few sequences, unequal lengths or bad characters."""


class UnknownSequence(CladeViewError, LookupError):
    """A leaf label or anchor identifier has no entry in the alignment."""


class NoAncestor(CladeViewError, LookupError):
    """The root has no ancestor."""


class InvalidZoomTarget(CladeViewError, ValueError):
    """Zoom targets must be internal, non-root nodes."""


class EmptySubtree(CladeViewError, ValueError):
    """The requested layout root has no leaves below it."""


class PositionOutOfRange(CladeViewError, IndexError):
    """An ungapped position or alignment column cannot be mapped."""


class InvalidPattern(CladeViewError, ValueError):
    """A motif contains characters other than A-Z and '.'."""
