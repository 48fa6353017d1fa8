"""
flexitree: editor core for Universal Dependencies trees.

Keeps one sentence model (tokens, multiword tokens, empty nodes, enhanced
dependencies) consistent under editing, numbers it in CoNLL-U and CG3 terms,
and projects it into elements a tree renderer can draw.
"""

__version__ = "1.0.0"

from flexitree.config import EditorConfig
from flexitree.doc import Head, RootToken, Sentence, SuperToken, Token, TokenIndices, TokenKind
from flexitree.errors import GraphError, GraphErrorKind
from flexitree.graph import TokenGraph
from flexitree.indices import IndexFormat, find_by_index, get_index, reindex, to_subscript
from flexitree.locks import LockCoordinator, LockEvent, LockEventKind, MemoryPrefsStore
from flexitree.projection import ElementKind, Progress, Projection, ProjectionElement, build_projection

__all__ = [
    "EditorConfig",
    "ElementKind",
    "GraphError",
    "GraphErrorKind",
    "Head",
    "IndexFormat",
    "LockCoordinator",
    "LockEvent",
    "LockEventKind",
    "MemoryPrefsStore",
    "Progress",
    "Projection",
    "ProjectionElement",
    "RootToken",
    "Sentence",
    "SuperToken",
    "Token",
    "TokenGraph",
    "TokenIndices",
    "TokenKind",
    "build_projection",
    "find_by_index",
    "get_index",
    "reindex",
    "to_subscript",
    "__version__",
]
