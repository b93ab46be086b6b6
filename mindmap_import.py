import logging
import xml.etree.ElementTree as ET
from typing import Optional, Set

from models import MindNode
from utils import new_node_id

logger = logging.getLogger(__name__)

# Freeplane writes TYPE="NODE"; older FreeMind exports use type="html".
RICH_CONTENT_TYPES = {"node", "html"}


class MindMapImportError(ValueError):
    """The document has no usable root node."""


def _rich_text(element: ET.Element) -> str:
    for child in element:
        if child.tag != "richcontent":
            continue
        kind = (child.get("TYPE") or child.get("type") or "").lower()
        if kind not in RICH_CONTENT_TYPES:
            continue
        text = " ".join(part.strip() for part in child.itertext() if part.strip())
        if text:
            return text
    return ""


def _convert(element: ET.Element, seen: Set[str]) -> MindNode:
    node_id = element.get("ID") or ""
    if not node_id or node_id in seen:
        node_id = new_node_id()
        while node_id in seen:
            node_id = new_node_id()
    seen.add(node_id)
    name = element.get("TEXT") or ""
    if not name:
        name = _rich_text(element)
    node = MindNode(id=node_id, name=name, attributes=dict(element.attrib))
    node.children = [_convert(child, seen) for child in element if child.tag == "node"]
    return node


def parse_mindmap_xml(text: str) -> MindNode:
    """Convert Freeplane/FreeMind XML into a MindNode tree."""
    try:
        document = ET.fromstring(text)
    except ET.ParseError as exc:
        raise MindMapImportError(f"The file is not valid XML: {exc}") from exc
    map_element: Optional[ET.Element] = document if document.tag == "map" else document.find(".//map")
    if map_element is None:
        raise MindMapImportError("No <map> element found in the document.")
    root_element = map_element.find(".//node")
    if root_element is None:
        raise MindMapImportError("No root <node> element found in <map>.")
    try:
        root = _convert(root_element, set())
    except RecursionError as exc:
        raise MindMapImportError("The mind map is nested too deeply to display.") from exc
    logger.info("Parsed mind map rooted at %r", root.name)
    return root


def load_mindmap(file_path: str) -> MindNode:
    with open(file_path, "r", encoding="utf-8-sig") as handle:
        return parse_mindmap_xml(handle.read())
