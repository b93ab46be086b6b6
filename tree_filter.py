"""Search filter for mind-map trees.

A node that contains the query reveals its own subtree down to ``max_depth``
levels below it. A node that does not match survives only as the ancestor of a
match and keeps just the children that lead to one. The source tree is never
modified; every node in a filtered result is a fresh copy.
"""
import logging
from typing import Optional

from models import MindNode
from utils import casefold_contains

logger = logging.getLogger(__name__)


def matches(node: MindNode, query: str) -> bool:
    return bool(query) and casefold_contains(node.name, query)


def copy_subtree(node: MindNode, depth: int) -> MindNode:
    """Deep copy of ``node`` keeping ``depth`` levels of descendants."""
    clone = node.shallow_copy()
    if depth > 0:
        clone.children = [copy_subtree(child, depth - 1) for child in node.children]
    return clone


def _filter(node: MindNode, query: str, max_depth: int) -> Optional[MindNode]:
    if matches(node, query):
        return copy_subtree(node, max_depth)
    kept = []
    for child in node.children:
        result = _filter(child, query, max_depth)
        if result is not None:
            kept.append(result)
    if not kept:
        return None
    clone = node.shallow_copy()
    clone.children = kept
    return clone


def filter_tree(tree: Optional[MindNode], query: str, max_depth: int) -> Optional[MindNode]:
    """Return the pruned tree for ``query``, or ``None`` when nothing matches.

    An empty (or whitespace-only) query returns ``tree`` itself.
    """
    if tree is None:
        return None
    query = (query or "").strip()
    if not query:
        return tree
    result = _filter(tree, query, max(0, int(max_depth)))
    if result is None:
        logger.debug("No nodes match %r", query)
    return result
