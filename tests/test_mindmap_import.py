import pytest

from mindmap_import import MindMapImportError, load_mindmap, parse_mindmap_xml
from models import node_ids

SAMPLE = """<map version="freeplane 1.9.13">
<node TEXT="Root" ID="ID_root" FOLDED="false">
  <node TEXT="First" ID="ID_1" POSITION="right">
    <node TEXT="Nested" ID="ID_1a"/>
    <hook NAME="FirstGroupNode"/>
  </node>
  <node ID="ID_2">
    <richcontent TYPE="NODE"><html><body><p>Rich</p><p>label</p></body></html></richcontent>
  </node>
  <node TEXT="No id"/>
  <node TEXT="Duplicate" ID="ID_1"/>
</node>
</map>
"""


def test_parse_basic_structure() -> None:
    root = parse_mindmap_xml(SAMPLE)
    assert root.id == "ID_root"
    assert root.name == "Root"
    assert root.attributes["FOLDED"] == "false"
    assert [child.name for child in root.children] == ["First", "Rich label", "No id", "Duplicate"]
    assert [child.name for child in root.children[0].children] == ["Nested"]


def test_parse_generates_unique_ids() -> None:
    root = parse_mindmap_xml(SAMPLE)
    ids = node_ids(root)
    assert len(ids) == len(set(ids))
    generated = root.children[2].id
    assert generated.startswith("genid-") and len(generated) == len("genid-") + 9
    assert root.children[3].id != "ID_1"


def test_parse_rejects_malformed_xml() -> None:
    with pytest.raises(MindMapImportError):
        parse_mindmap_xml("<map><node TEXT='x'></map>")


def test_parse_rejects_document_without_nodes() -> None:
    with pytest.raises(MindMapImportError):
        parse_mindmap_xml("<map version='1'></map>")
    with pytest.raises(MindMapImportError):
        parse_mindmap_xml("<other><thing/></other>")


def test_load_mindmap_from_file(tmp_path) -> None:
    path = tmp_path / "sample.mm"
    path.write_text(SAMPLE, encoding="utf-8")
    root = load_mindmap(str(path))
    assert root.name == "Root"


def test_load_mindmap_missing_file(tmp_path) -> None:
    with pytest.raises(OSError):
        load_mindmap(str(tmp_path / "nope.mm"))


def test_parse_rejects_excessive_nesting() -> None:
    depth = 5000
    text = "<map>" + "<node TEXT='n'>" * depth + "</node>" * depth + "</map>"
    with pytest.raises(MindMapImportError):
        parse_mindmap_xml(text)
