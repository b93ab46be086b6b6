import tkinter as tk

import pytest

from layout import fit_transform, layout_tree
from main_view import MainView
from models import DiagramScene, MindNode, tree_links


def _tk_available() -> bool:
    try:
        root = tk.Tk()
        root.withdraw()
        root.destroy()
        return True
    except tk.TclError:
        return False


def _tree() -> MindNode:
    return MindNode(
        id="r",
        name="Central topic",
        attributes={"ID": "r", "TEXT": "Central topic", "FOLDED": "false"},
        children=[MindNode(id="a", name="First branch"), MindNode(id="b", name="Second branch")],
    )


@pytest.mark.gui
def test_main_view_smoke() -> None:
    if not _tk_available():
        pytest.skip("Tkinter unavailable")
    root = tk.Tk()
    root.withdraw()
    callbacks = {name: (lambda *args, **kwargs: None) for name in (
        "on_open",
        "on_view_change",
        "on_layout_change",
        "on_depth_change",
        "on_filter_change",
        "on_clear_filter",
        "on_open_settings",
        "on_resize",
        "on_close",
    )}
    view = MainView(root, callbacks)
    view.set_map_style({"map_bg": "#ffffff", "font_size": 10})
    assert view.measure_text("abc", 10) > 0

    tree = _tree()
    nodes = layout_tree(tree, view.measure_text)
    scene = DiagramScene(nodes=nodes, links=tree_links(tree), transform=fit_transform(nodes, view.viewport_size()))
    view.draw_diagram(scene)
    assert set(view.rendered_label_sizes()) == {"r", "a", "b"}

    view.set_view_mode("list")
    view.populate_list(tree, "branch")
    top = view.list_tree.get_children()
    assert len(top) == 1
    assert view.list_tree.item(top[0], "values")[0] == "FOLDED=false"
    assert len(view.list_tree.get_children(top[0])) == 2

    view.show_message("No matching nodes found.")
    assert view.map_canvas.find_all()
    root.destroy()


@pytest.mark.gui
def test_filter_entry_dispatches_changes() -> None:
    if not _tk_available():
        pytest.skip("Tkinter unavailable")
    root = tk.Tk()
    root.withdraw()
    seen = []
    view = MainView(root, {"on_filter_change": seen.append})
    view.set_filter("topic")
    assert seen == ["topic"]
    root.destroy()
