from layout import TreeLayoutConfig, fit_transform, label_box, layout_tree
from models import MindNode


def _tree() -> MindNode:
    return MindNode(
        id="r",
        name="root",
        children=[
            MindNode(id="a", name="a", children=[MindNode(id="a1", name="a1"), MindNode(id="a2", name="a2")]),
            MindNode(id="b", name="b"),
        ],
    )


def _measure(label: str, _size: int) -> float:
    return float(len(label) * 6)


def test_layout_is_deterministic() -> None:
    first = {key: (item.x, item.y) for key, item in layout_tree(_tree(), _measure).items()}
    second = {key: (item.x, item.y) for key, item in layout_tree(_tree(), _measure).items()}
    assert first == second


def test_layout_depth_columns_and_centered_parents() -> None:
    nodes = layout_tree(_tree(), _measure)
    assert nodes["r"].x == 0
    assert nodes["a"].x == 180
    assert nodes["a1"].x == 360
    assert nodes["r"].y == 0
    assert nodes["a2"].y - nodes["a1"].y == 70
    assert nodes["a"].y == (nodes["a1"].y + nodes["a2"].y) / 2
    assert nodes["r"].y == (nodes["a"].y + nodes["b"].y) / 2


def test_layout_sizes_labels() -> None:
    nodes = layout_tree(_tree(), _measure)
    assert nodes["a1"].lines == ["a1"]
    assert nodes["a1"].width == 12.0
    assert nodes["a1"].height > 0


def test_label_box_side_depends_on_children() -> None:
    config = TreeLayoutConfig()
    nodes = layout_tree(_tree(), _measure, config)
    internal = label_box(nodes["a"], config)
    leaf = label_box(nodes["b"], config)
    assert internal[0] < nodes["a"].x and internal[2] == nodes["a"].x + config.marker_radius
    assert leaf[2] > nodes["b"].x and leaf[0] == nodes["b"].x - config.marker_radius


def test_fit_transform_never_enlarges_and_centers() -> None:
    config = TreeLayoutConfig()
    nodes = layout_tree(_tree(), _measure, config)
    transform = fit_transform(nodes, (2000, 2000), config)
    assert transform.k == 1.0
    x1 = min(label_box(item, config)[0] for item in nodes.values())
    x2 = max(label_box(item, config)[2] for item in nodes.values())
    left, _ = transform.apply(x1, 0)
    right, _ = transform.apply(x2, 0)
    assert abs((left - 0) - (2000 - right)) < 1e-6


def test_fit_transform_shrinks_to_viewport() -> None:
    config = TreeLayoutConfig()
    nodes = layout_tree(_tree(), _measure, config)
    transform = fit_transform(nodes, (200, 100), config)
    assert 0 < transform.k < 1
    for item in nodes.values():
        x1, y1, x2, y2 = label_box(item, config)
        sx1, sy1 = transform.apply(x1, y1)
        sx2, sy2 = transform.apply(x2, y2)
        assert sx1 >= config.fit_padding - 1e-6 and sx2 <= 200 - config.fit_padding + 1e-6
        assert sy1 >= -1e-6 and sy2 <= 100 + 1e-6


def test_fit_transform_empty() -> None:
    transform = fit_transform({}, (400, 300))
    assert (transform.x, transform.y, transform.k) == (200, 150, 1.0)
