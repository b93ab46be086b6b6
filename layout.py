"""Deterministic tree layout.

Depth runs left to right at a fixed ``level_spacing``; siblings stack top to
bottom at a fixed ``sibling_spacing`` in source order. Leaves take consecutive
slots and every parent sits midway between its first and last child, so a
subtree's extent is the sum of its leaves. Label length does not influence
spacing, which keeps the result reproducible but lets long labels overlap;
the controller's display guard keeps trees small enough for that to be rare.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional, Tuple

from models import LayoutNode, MindNode, ViewTransform
from text_wrap import MeasureFn, measure_block, wrap_label

logger = logging.getLogger(__name__)

Box = Tuple[float, float, float, float]


@dataclass(frozen=True)
class TreeLayoutConfig:
    level_spacing: float = 180.0
    sibling_spacing: float = 70.0
    text_max_width: float = 150.0
    font_size: int = 10
    marker_radius: float = 5.0
    label_offset: float = 13.0
    fit_padding: float = 20.0


def build_layout_nodes(tree: MindNode) -> Dict[str, LayoutNode]:
    """Wrap every node in a LayoutNode, linking parents and children, in pre-order."""
    nodes: Dict[str, LayoutNode] = {}

    def visit(node: MindNode, depth: int, parent: Optional[LayoutNode]) -> None:
        item = LayoutNode(node=node, depth=depth, parent=parent)
        nodes[node.id] = item
        if parent is not None:
            parent.children.append(item)
        for child in node.children:
            visit(child, depth + 1, item)

    visit(tree, 0, None)
    return nodes


def size_labels(
    nodes: Iterable[LayoutNode],
    measure: Optional[MeasureFn],
    text_max_width: float,
    font_size: int,
) -> None:
    for item in nodes:
        item.lines = wrap_label(item.name, text_max_width, measure, font_size)
        item.width, item.height = measure_block(item.lines, measure, font_size)


def layout_tree(
    tree: MindNode,
    measure: Optional[MeasureFn] = None,
    config: Optional[TreeLayoutConfig] = None,
) -> Dict[str, LayoutNode]:
    config = config or TreeLayoutConfig()
    nodes = build_layout_nodes(tree)
    root = nodes[tree.id]
    next_slot = 0

    def place(item: LayoutNode) -> None:
        nonlocal next_slot
        item.x = item.depth * config.level_spacing
        if not item.children:
            item.y = next_slot * config.sibling_spacing
            next_slot += 1
            return
        for child in item.children:
            place(child)
        item.y = (item.children[0].y + item.children[-1].y) / 2

    place(root)
    offset = root.y
    for item in nodes.values():
        item.y -= offset
        item.radius = config.marker_radius
    size_labels(nodes.values(), measure, config.text_max_width, config.font_size)
    logger.debug("Tree layout placed %d nodes", len(nodes))
    return nodes


def label_box(item: LayoutNode, config: TreeLayoutConfig, centered: bool = False) -> Box:
    """Footprint of a node marker plus its label."""
    half_h = max(item.height / 2, item.radius)
    if centered:
        half_w = max(item.width / 2, item.radius)
        return (item.x - half_w, item.y - half_h, item.x + half_w, item.y + half_h)
    if item.has_children:
        x1 = item.x - config.label_offset - item.width
        x2 = item.x + item.radius
    else:
        x1 = item.x - item.radius
        x2 = item.x + config.label_offset + item.width
    return (x1, item.y - half_h, x2, item.y + half_h)


def bounding_box(nodes: Iterable[LayoutNode], box_for: Callable[[LayoutNode], Box]) -> Optional[Box]:
    result: Optional[Box] = None
    for item in nodes:
        x1, y1, x2, y2 = box_for(item)
        if result is None:
            result = (x1, y1, x2, y2)
        else:
            result = (min(result[0], x1), min(result[1], y1), max(result[2], x2), max(result[3], y2))
    return result


def fit_transform(
    nodes: Dict[str, LayoutNode],
    viewport: Tuple[float, float],
    config: Optional[TreeLayoutConfig] = None,
    centered_labels: bool = False,
) -> ViewTransform:
    """Largest scale <= 1 that fits every footprint inside the padded viewport, centered."""
    config = config or TreeLayoutConfig()
    box = bounding_box(nodes.values(), lambda item: label_box(item, config, centered_labels))
    view_w, view_h = viewport
    if box is None:
        return ViewTransform(view_w / 2, view_h / 2, 1.0)
    x1, y1, x2, y2 = box
    box_w = max(x2 - x1, 1.0)
    box_h = max(y2 - y1, 1.0)
    avail_w = max(view_w - 2 * config.fit_padding, 1.0)
    avail_h = max(view_h - 2 * config.fit_padding, 1.0)
    scale = min(avail_w / box_w, avail_h / box_h, 1.0)
    tx = (view_w - box_w * scale) / 2 - x1 * scale
    ty = (view_h - box_h * scale) / 2 - y1 * scale
    return ViewTransform(tx, ty, scale)
