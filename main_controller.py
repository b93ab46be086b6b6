import logging
import os
import sys
from dataclasses import dataclass, replace
from typing import Dict, Optional

import tkinter as tk
from tkinter import filedialog, messagebox

from force_layout import ForceConfig, ForceSimulation, layout_force
from layout import TreeLayoutConfig, fit_transform, layout_tree
from main_view import MainView
from mindmap_import import MindMapImportError, load_mindmap
from models import DiagramScene, MindNode, ViewTransform, count_nodes, tree_links
from settings_view import SettingsView
from store import SETTING_LIMITS, StoredState, default_state_path, load_state, normalize_setting, save_state
from tree_filter import filter_tree
from utils import clamp_int

logger = logging.getLogger(__name__)

NO_DATA_MESSAGE = "Open a mind map (.mm) file to display it."
NO_MATCH_MESSAGE = "No matching nodes found."


@dataclass(frozen=True)
class ViewState:
    """Everything a render depends on; replaced as a whole, never mutated."""

    tree: Optional[MindNode] = None
    source: str = ""
    mode: str = "diagram"
    query: str = ""
    result: Optional[MindNode] = None


class MainController:
    # One force-simulation step per display refresh (~60 Hz).
    FORCE_FRAME_MS = 16
    color_keys = ("map_bg", "map_text", "map_edge", "node_internal", "node_leaf", "node_match", "node_fill")

    def __init__(self, root: tk.Tk) -> None:
        self.root = root
        self.root.title("MMV \u29BF Mind Map Viewer")
        self._filter_job: Optional[str] = None
        self._resize_job: Optional[str] = None
        self._force_job: Optional[str] = None
        self._force_run = 0
        self._simulation: Optional[ForceSimulation] = None
        self._pending_query = ""

        self.default_view_settings = self._default_view_settings()
        self.view_settings: Dict[str, object] = dict(self.default_view_settings)
        self.state_path = default_state_path()
        self.state_geometry = ""
        self.last_directory = ""
        self._load_state()
        self.state = ViewState(mode=str(self.view_settings["mode"]))

        # Default window size and minimum resize bounds.
        self.root.geometry(self.state_geometry or "1100x700")
        self.root.minsize(640, 400)

        self.view = MainView(
            self.root,
            callbacks={
                "on_open": self.open_file,
                "on_view_change": self.on_view_change,
                "on_layout_change": self.on_layout_change,
                "on_depth_change": self.on_depth_change,
                "on_filter_change": self.on_filter_change,
                "on_clear_filter": self.clear_filter,
                "on_open_settings": self.open_settings,
                "on_resize": self.on_resize,
                "on_close": self.on_close,
            },
        )

        self.settings_view = SettingsView(
            self.root,
            callbacks={
                "on_apply": self.apply_settings_from_view,
                "on_restore_defaults": self.reset_view_settings,
                "on_close": self.close_settings,
            },
        )

        self._apply_view_settings()
        self._apply_window_state()
        self.refresh()

    def _default_view_settings(self) -> Dict[str, object]:
        return {
            # Debounce delays; typing waits longer than resizing.
            "search_debounce_ms": 1000,
            "resize_debounce_ms": 250,
            # Diagram display guard, per layout algorithm.
            "node_display_limit": 50,
            "force_display_limit": 20,
            "filter_max_depth": 2,
            "mode": "diagram",
            "diagram_layout": "tree",
            # Empty family means the Tk default font.
            "font_family": "",
            "font_size": 10,
            "text_max_width": 150,
            "map_bg": "#ffffff",
            "map_text": "#1f2933",
            "map_edge": "#cccccc",
            "node_internal": "#555555",
            "node_leaf": "#999999",
            "node_match": "orange",
            "node_fill": "#f4f6f9",
        }

    def _load_state(self) -> None:
        state = load_state(self.state_path, self.default_view_settings)
        self.state_geometry = state.geometry
        self.last_directory = state.last_directory
        self.view_settings = dict(state.view_settings)
        for key in self.color_keys:
            if not self._is_color(str(self.view_settings.get(key, ""))):
                logger.warning("Ignoring saved %s %r; not a valid color", key, self.view_settings.get(key))
                self.view_settings[key] = self.default_view_settings[key]

    def _is_color(self, value: str) -> bool:
        try:
            self.root.winfo_rgb(value)
        except tk.TclError:
            return False
        return True

    def _apply_window_state(self) -> None:
        self.view.set_view_mode(self.state.mode)
        self.view.set_layout(str(self.view_settings["diagram_layout"]))
        self.view.set_depth(self._max_depth())

    def _apply_view_settings(self) -> None:
        self.view.set_map_style(self.view_settings)

    # --- Settings accessors ----------------------------------------------

    def _setting_int(self, key: str) -> int:
        low, high = SETTING_LIMITS[key]
        default = int(self.default_view_settings[key])
        return clamp_int(self.view_settings.get(key, default), default, low, high)

    def _max_depth(self) -> int:
        return self._setting_int("filter_max_depth")

    def _diagram_layout(self) -> str:
        return "force" if self.view_settings.get("diagram_layout") == "force" else "tree"

    def display_limit(self) -> int:
        if self._diagram_layout() == "force":
            return self._setting_int("force_display_limit")
        return self._setting_int("node_display_limit")

    def _tree_config(self) -> TreeLayoutConfig:
        return TreeLayoutConfig(
            text_max_width=float(self._setting_int("text_max_width")),
            font_size=self._setting_int("font_size"),
        )

    def _force_config(self) -> ForceConfig:
        return ForceConfig(
            text_max_width=float(self._setting_int("text_max_width")),
            font_size=self._setting_int("font_size"),
        )

    # --- Import -----------------------------------------------------------

    def open_file(self) -> None:
        file_path = filedialog.askopenfilename(
            filetypes=[("Mind maps", "*.mm"), ("XML files", "*.xml"), ("All files", "*.*")],
            initialdir=self.last_directory or None,
            title="Open mind map",
        )
        if not file_path:
            return
        self.load_file(file_path)

    def load_file(self, file_path: str) -> bool:
        try:
            tree = load_mindmap(file_path)
        except (OSError, MindMapImportError) as exc:
            logger.warning("Import of %s failed: %s", file_path, exc)
            messagebox.showerror("Import failed", str(exc))
            if self.state.tree is None:
                self.refresh()
            return False
        self.last_directory = os.path.dirname(os.path.abspath(file_path))
        self.set_tree(tree, os.path.basename(file_path))
        return True

    def set_tree(self, tree: MindNode, source: str = "") -> None:
        self._cancel_filter_job()
        self._pending_query = ""
        self.view.set_filter("")
        # set_filter fires the entry trace; the reset query applies immediately instead.
        self._cancel_filter_job()
        self.state = ViewState(tree=tree, source=source, mode=self.state.mode)
        logger.info("Loaded %s (%d nodes)", source or "mind map", count_nodes(tree))
        self.refresh()

    # --- Search -----------------------------------------------------------

    def on_filter_change(self, value: str) -> None:
        self._pending_query = value
        self._cancel_filter_job()
        delay = self._setting_int("search_debounce_ms")
        self._filter_job = self.root.after(delay, self.apply_filter)

    def _cancel_filter_job(self) -> None:
        if self._filter_job is not None:
            self.root.after_cancel(self._filter_job)
            self._filter_job = None

    def apply_filter(self) -> None:
        self._filter_job = None
        self.state = replace(self.state, query=self._pending_query.strip())
        self.refresh()

    def clear_filter(self) -> None:
        self.view.set_filter("")
        self._cancel_filter_job()
        self._pending_query = ""
        self.apply_filter()

    def on_depth_change(self, raw: str) -> None:
        depth = clamp_int(raw, self._max_depth(), *SETTING_LIMITS["filter_max_depth"])
        self.view.set_depth(depth)
        if depth == self._max_depth():
            return
        self.view_settings["filter_max_depth"] = depth
        self.refresh()

    # --- Mode / layout ----------------------------------------------------

    def on_view_change(self, mode: str) -> None:
        mode = mode if mode in {"diagram", "list"} else "diagram"
        if mode == self.state.mode:
            return
        self.state = replace(self.state, mode=mode)
        self.view_settings["mode"] = mode
        self.view.set_view_mode(mode)
        self.refresh()

    def on_layout_change(self, layout: str) -> None:
        layout = "force" if layout == "force" else "tree"
        if layout == self._diagram_layout():
            return
        self.view_settings["diagram_layout"] = layout
        self.view.set_layout(layout)
        if self.state.mode == "diagram":
            self.refresh()

    def on_resize(self, _width: int = 0, _height: int = 0) -> None:
        if self._resize_job is not None:
            self.root.after_cancel(self._resize_job)
        delay = self._setting_int("resize_debounce_ms")
        self._resize_job = self.root.after(delay, self._apply_resize)

    def _apply_resize(self) -> None:
        self._resize_job = None
        if self.state.tree is None or self.state.mode != "diagram":
            return
        self._render(self.state.result)

    # --- Rendering --------------------------------------------------------

    def refresh(self) -> None:
        """Filter the current tree with the current query and render the active mode."""
        tree = self.state.tree
        result = filter_tree(tree, self.state.query, self._max_depth()) if tree is not None else None
        self.state = replace(self.state, result=result)
        self._render(result)

    def _render(self, result: Optional[MindNode]) -> None:
        self._cancel_force_run()
        if self.state.tree is None:
            self.view.show_message(NO_DATA_MESSAGE)
            self.view.set_status("No mind map loaded.")
            return
        if result is None:
            self.view.show_message(NO_MATCH_MESSAGE)
            self.view.set_status(self._status_text(0))
            return
        shown = count_nodes(result)
        if self.state.mode == "list":
            self.view.populate_list(result, self.state.query)
            self.view.set_status(self._status_text(shown))
            return
        limit = self.display_limit()
        if shown > limit:
            logger.info("Diagram refused: %d nodes exceeds limit %d", shown, limit)
            self.view.show_message(
                f"Mind map is too large to display ({shown} nodes, limit {limit}).\n"
                "Narrow the search or raise the node limit in Settings."
            )
            self.view.set_status(self._status_text(shown) + " (too many to draw)")
            return
        if self._diagram_layout() == "force":
            self._render_force(result)
        else:
            self._render_tree(result)
        self.view.set_status(self._status_text(shown))

    def _render_tree(self, result: MindNode) -> None:
        config = self._tree_config()
        nodes = layout_tree(result, self.view.measure_text, config)
        transform = fit_transform(nodes, self.view.viewport_size(), config)
        scene = DiagramScene(nodes=nodes, links=tree_links(result), transform=transform, query=self.state.query, layout="tree")
        self.view.draw_diagram(scene)

    def _render_force(self, result: MindNode) -> None:
        simulation = layout_force(result, self.view.measure_text, self.view.viewport_size(), self._force_config())
        scene = DiagramScene(
            nodes=simulation.nodes,
            links=tree_links(result),
            transform=ViewTransform(),
            query=self.state.query,
            layout="force",
        )
        self.view.draw_diagram(scene)
        self._start_force_run(simulation)

    def _status_text(self, shown: int) -> str:
        total = count_nodes(self.state.tree)
        text = f"{shown} of {total} nodes shown"
        if self.state.query:
            text += f" for \"{self.state.query}\""
        if self.state.source:
            text += f" | {self.state.source}"
        return text

    # --- Force simulation scheduling --------------------------------------

    def _start_force_run(self, simulation: ForceSimulation) -> None:
        self._cancel_force_run()
        self._simulation = simulation
        run_id = self._force_run
        self._force_job = self.root.after(self.FORCE_FRAME_MS, lambda: self._force_tick(run_id))

    def _cancel_force_run(self) -> None:
        if self._force_job is not None:
            self.root.after_cancel(self._force_job)
            self._force_job = None
        self._force_run += 1
        self._simulation = None

    def _force_tick(self, run_id: int) -> None:
        if run_id != self._force_run or self._simulation is None:
            return
        self._force_job = None
        simulation = self._simulation
        if not simulation.measured:
            simulation.apply_label_sizes(self.view.rendered_label_sizes())
        if not simulation.step():
            logger.debug("Force layout settled after %d iterations", simulation.iterations)
            return
        self.view.update_positions(simulation.snapshot())
        self._force_job = self.root.after(self.FORCE_FRAME_MS, lambda: self._force_tick(run_id))

    # --- Settings window --------------------------------------------------

    def open_settings(self) -> None:
        self.settings_view.show(self.view_settings)

    def close_settings(self) -> None:
        self.settings_view.destroy()

    def apply_settings_from_view(self) -> None:
        if not self.settings_view.window:
            return
        settings = self.settings_view.get_settings()
        previous = dict(self.view_settings)
        new_settings = dict(self.view_settings)
        for key in self.color_keys:
            value = str(settings.get(key, "")).strip()
            if not value:
                continue
            if not self._is_color(value):
                messagebox.showerror(
                    "Invalid color",
                    f"'{value}' is not a color Tk recognizes.",
                    parent=self.settings_view.window,
                )
                return
            new_settings[key] = value
        font_family = str(settings.get("font_family", "")).strip()
        if font_family:
            new_settings["font_family"] = font_family
        for key in SETTING_LIMITS:
            raw = str(settings.get(key, "")).strip()
            if not raw:
                continue
            try:
                int(raw)
            except ValueError:
                messagebox.showerror(
                    "Invalid setting",
                    f"{key.replace('_', ' ').capitalize()} must be a whole number.",
                    parent=self.settings_view.window,
                )
                return
            new_settings[key] = normalize_setting(key, raw, self.default_view_settings[key])

        self.view_settings = new_settings
        try:
            self._apply_view_settings()
        except tk.TclError as exc:
            self.view_settings = previous
            self._apply_view_settings()
            messagebox.showerror("Invalid setting", str(exc), parent=self.settings_view.window)
            return
        self.view.set_depth(self._max_depth())
        self.settings_view.set_settings(self.view_settings)
        self.refresh()

    def reset_view_settings(self) -> None:
        mode = self.state.mode
        self.view_settings = dict(self.default_view_settings)
        self.view_settings["mode"] = mode
        self._apply_view_settings()
        self._apply_window_state()
        self.settings_view.set_settings(self.view_settings)
        self.refresh()

    def on_close(self) -> None:
        self._cancel_force_run()
        self._cancel_filter_job()
        if self._resize_job is not None:
            self.root.after_cancel(self._resize_job)
            self._resize_job = None
        state = StoredState(
            geometry=self.root.winfo_geometry(),
            last_directory=self.last_directory,
            view_settings=self.view_settings,
        )
        save_state(self.state_path, state)
        self.close_settings()
        self.root.destroy()


def main() -> None:
    level_name = os.getenv("MMV_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    root = tk.Tk()
    controller = MainController(root)
    if len(sys.argv) > 1:
        controller.load_file(sys.argv[1])
    root.mainloop()


if __name__ == "__main__":
    main()
