import copy

from models import MindNode, count_nodes, iter_nodes
from tree_filter import copy_subtree, filter_tree


def _node(node_id: str, name: str, *children: MindNode) -> MindNode:
    return MindNode(id=node_id, name=name, children=list(children))


def _sample() -> MindNode:
    return _node(
        "root",
        "Projects",
        _node(
            "a",
            "Garden",
            _node("a1", "Tomatoes", _node("a1x", "Seeds", _node("a1xy", "Order catalogue"))),
            _node("a2", "Fence"),
        ),
        _node("b", "Kitchen", _node("b1", "Paint walls"), _node("b2", "New tomato rack")),
    )


def _names(tree: MindNode) -> list:
    return [node.name for node in iter_nodes(tree)]


def test_empty_query_returns_same_tree() -> None:
    tree = _sample()
    assert filter_tree(tree, "", 2) is tree
    assert filter_tree(tree, "   ", 2) is tree


def test_none_tree_returns_none() -> None:
    assert filter_tree(None, "x", 2) is None


def test_no_match_returns_none() -> None:
    assert filter_tree(_sample(), "zzz", 2) is None


def test_match_keeps_ancestors_and_limited_subtree() -> None:
    result = filter_tree(_sample(), "tomatoes", 2)
    assert result is not None
    assert _names(result) == ["Projects", "Garden", "Tomatoes", "Seeds", "Order catalogue"]
    # Non-matching ancestors keep only the path to the match.
    assert [child.name for child in result.children] == ["Garden"]
    assert [child.name for child in result.children[0].children] == ["Tomatoes"]


def test_depth_zero_keeps_match_only() -> None:
    result = filter_tree(_sample(), "Tomatoes", 0)
    assert result is not None
    assert _names(result) == ["Projects", "Garden", "Tomatoes"]


def test_depth_one_cuts_grandchildren() -> None:
    result = filter_tree(_sample(), "Tomatoes", 1)
    assert _names(result) == ["Projects", "Garden", "Tomatoes", "Seeds"]


def test_negative_depth_treated_as_zero() -> None:
    assert _names(filter_tree(_sample(), "Tomatoes", -3)) == _names(filter_tree(_sample(), "Tomatoes", 0))


def test_case_insensitive_substring() -> None:
    result = filter_tree(_sample(), "TOMATO", 0)
    assert result is not None
    assert set(_names(result)) == {"Projects", "Garden", "Tomatoes", "Kitchen", "New tomato rack"}


def test_root_match_shows_root_subtree() -> None:
    result = filter_tree(_sample(), "projects", 1)
    assert _names(result) == ["Projects", "Garden", "Kitchen"]


def test_matching_descendants_below_a_match_are_not_expanded() -> None:
    tree = _node("r", "alpha", _node("c", "beta", _node("g", "alpha again", _node("gg", "deep"))))
    result = filter_tree(tree, "alpha", 1)
    # The root matches, so only one level below it is shown.
    assert _names(result) == ["alpha", "beta"]


def test_growing_depth_never_removes_nodes() -> None:
    tree = _sample()
    previous = set()
    for depth in range(5):
        ids = {node.id for node in iter_nodes(filter_tree(tree, "garden", depth))}
        assert previous <= ids
        previous = ids
    assert count_nodes(filter_tree(tree, "garden", 4)) == 6


def test_input_is_not_mutated_and_result_is_not_aliased() -> None:
    tree = _sample()
    before = copy.deepcopy(tree)
    result = filter_tree(tree, "kitchen", 2)
    assert tree == before
    source_ids = {id(node) for node in iter_nodes(tree)}
    assert all(id(node) not in source_ids for node in iter_nodes(result))
    result.children[0].name = "changed"
    assert tree.children[1].name == "Kitchen"


def test_copy_subtree_keeps_attributes_independent() -> None:
    node = MindNode(id="n", name="x", attributes={"ID": "n"}, children=[MindNode(id="c", name="y")])
    clone = copy_subtree(node, 0)
    assert clone.children == []
    clone.attributes["ID"] = "other"
    assert node.attributes["ID"] == "n"


def _project() -> MindNode:
    return _node("root", "Project", _node("a", "Design"), _node("b", "Build", _node("c", "Testing")))


def test_project_scenarios() -> None:
    assert [n.id for n in iter_nodes(filter_tree(_project(), "design", 1))] == ["root", "a"]
    assert [n.id for n in iter_nodes(filter_tree(_project(), "project", 0))] == ["root"]
    assert filter_tree(_project(), "nomatch", 2) is None
