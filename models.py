from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple


@dataclass
class MindNode:
    id: str
    name: str = ""
    attributes: Dict[str, str] = field(default_factory=dict)
    children: List["MindNode"] = field(default_factory=list)

    @property
    def has_children(self) -> bool:
        return bool(self.children)

    def shallow_copy(self) -> "MindNode":
        """Fresh node with the same label and metadata and no children."""
        return MindNode(id=self.id, name=self.name, attributes=dict(self.attributes))


@dataclass
class LayoutNode:
    node: MindNode
    depth: int
    x: float = 0.0
    y: float = 0.0
    lines: List[str] = field(default_factory=list)
    width: float = 0.0
    height: float = 0.0
    radius: float = 0.0
    # Velocities are only used by the force simulation.
    vx: float = 0.0
    vy: float = 0.0
    parent: Optional["LayoutNode"] = field(default=None, repr=False, compare=False)
    children: List["LayoutNode"] = field(default_factory=list, repr=False, compare=False)

    @property
    def id(self) -> str:
        return self.node.id

    @property
    def name(self) -> str:
        return self.node.name

    @property
    def has_children(self) -> bool:
        return bool(self.node.children)


@dataclass(frozen=True)
class ViewTransform:
    x: float = 0.0
    y: float = 0.0
    k: float = 1.0

    def apply(self, x: float, y: float) -> Tuple[float, float]:
        return (x * self.k + self.x, y * self.k + self.y)


@dataclass
class DiagramScene:
    nodes: Dict[str, LayoutNode]
    links: List[Tuple[str, str]]
    transform: ViewTransform = field(default_factory=ViewTransform)
    query: str = ""
    layout: str = "tree"


def iter_nodes(root: MindNode) -> Iterator[MindNode]:
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def count_nodes(root: Optional[MindNode]) -> int:
    if root is None:
        return 0
    return sum(1 for _ in iter_nodes(root))


def node_ids(root: Optional[MindNode]) -> List[str]:
    if root is None:
        return []
    return [node.id for node in iter_nodes(root)]


def tree_links(root: MindNode) -> List[Tuple[str, str]]:
    links: List[Tuple[str, str]] = []
    for node in iter_nodes(root):
        for child in node.children:
            links.append((node.id, child.id))
    return links
