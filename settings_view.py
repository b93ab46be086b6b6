import tkinter as tk
import tkinter.font as tkfont
from tkinter import colorchooser, ttk
from typing import Callable, Dict, Optional

# DEFAULT VALUES (first-run / app start)
# To change the *default* colors, fonts, limits and delays the app starts with,
# edit the _default_view_settings() method in `main_controller.py`.
# Allowed ranges for the numeric keys live in SETTING_LIMITS in `store.py`.


class SettingsView:
    color_fields = [
        ("Diagram background", "map_bg"),
        ("Label text", "map_text"),
        ("Links", "map_edge"),
        ("Node with children", "node_internal"),
        ("Leaf node", "node_leaf"),
        ("Search match", "node_match"),
        ("Node box fill (force layout)", "node_fill"),
    ]
    number_fields = [
        ("Search delay (ms)", "search_debounce_ms", 0, 10000, 100),
        ("Resize delay (ms)", "resize_debounce_ms", 0, 5000, 50),
        ("Node limit (tree layout)", "node_display_limit", 1, 5000, 5),
        ("Node limit (force layout)", "force_display_limit", 1, 2000, 5),
        ("Search depth below a match", "filter_max_depth", 0, 50, 1),
        ("Label wrap width (px)", "text_max_width", 40, 1000, 10),
    ]

    def __init__(self, root: tk.Tk, callbacks: dict) -> None:
        self.root = root
        self.callbacks = callbacks
        self.window: Optional[tk.Toplevel] = None
        self.settings_vars: Dict[str, tk.StringVar] = {}

    def show(self, view_settings: Dict[str, object]) -> None:
        if self.window and self.window.winfo_exists():
            self.set_settings(view_settings)
            self.window.lift()
            self.window.focus_set()
            return

        win = tk.Toplevel(self.root)
        win.title("Settings")
        win.transient(self.root)
        win.resizable(False, False)
        win.protocol("WM_DELETE_WINDOW", self._dispatch("on_close"))
        self.window = win

        container = ttk.Frame(win, padding=12)
        container.grid(row=0, column=0, sticky="nsew")
        container.columnconfigure(0, weight=1)
        container.rowconfigure(0, weight=1)

        notebook = ttk.Notebook(container)
        notebook.grid(row=0, column=0, sticky="nsew")

        self.settings_vars = {"font_family": tk.StringVar(), "font_size": tk.StringVar()}
        for _, key in self.color_fields:
            self.settings_vars[key] = tk.StringVar()
        for _, key, *_range in self.number_fields:
            self.settings_vars[key] = tk.StringVar()

        display_tab = ttk.Frame(notebook, padding=10)
        notebook.add(display_tab, text="Display")
        display_tab.columnconfigure(1, weight=1)

        row = 0
        for label, key in self.color_fields:
            ttk.Label(display_tab, text=label).grid(row=row, column=0, sticky="w", pady=4)
            ttk.Entry(display_tab, textvariable=self.settings_vars[key], width=16).grid(row=row, column=1, sticky="w")
            ttk.Button(
                display_tab,
                text="Pick",
                command=lambda v=self.settings_vars[key]: self._pick_color(win, v),
            ).grid(row=row, column=2, padx=(6, 0))
            row += 1

        ttk.Separator(display_tab, orient=tk.HORIZONTAL).grid(row=row, column=0, columnspan=3, sticky="ew", pady=8)
        row += 1

        ttk.Label(display_tab, text="Font family").grid(row=row, column=0, sticky="w", pady=4)
        ttk.Combobox(
            display_tab,
            textvariable=self.settings_vars["font_family"],
            values=sorted(tkfont.families()),
            width=22,
            state="readonly",
        ).grid(row=row, column=1, columnspan=2, sticky="w")
        row += 1

        ttk.Label(display_tab, text="Font size").grid(row=row, column=0, sticky="w", pady=4)
        ttk.Spinbox(
            display_tab,
            from_=6,
            to=72,
            textvariable=self.settings_vars["font_size"],
            width=8,
        ).grid(row=row, column=1, sticky="w")

        limits_tab = ttk.Frame(notebook, padding=10)
        notebook.add(limits_tab, text="Search / Limits")
        limits_tab.columnconfigure(1, weight=1)

        ttk.Label(
            limits_tab,
            text="Diagrams larger than the node limit are not drawn; narrow the search or raise the limit.",
            wraplength=360,
            justify=tk.LEFT,
        ).grid(row=0, column=0, columnspan=2, sticky="w", pady=(0, 8))
        for idx, (label, key, low, high, step) in enumerate(self.number_fields, start=1):
            ttk.Label(limits_tab, text=label).grid(row=idx, column=0, sticky="w", pady=4)
            ttk.Spinbox(
                limits_tab,
                from_=low,
                to=high,
                increment=step,
                textvariable=self.settings_vars[key],
                width=8,
            ).grid(row=idx, column=1, sticky="w")

        actions = ttk.Frame(container)
        actions.grid(row=1, column=0, sticky="e", pady=(10, 0))
        ttk.Button(actions, text="Restore Defaults", command=self._dispatch("on_restore_defaults")).grid(
            row=0, column=0, padx=(0, 6)
        )
        ttk.Button(actions, text="Apply", command=self._dispatch("on_apply")).grid(row=0, column=1, padx=(0, 6))
        ttk.Button(actions, text="Close", command=self._dispatch("on_close")).grid(row=0, column=2)

        self.set_settings(view_settings)

    def set_settings(self, view_settings: Dict[str, object]) -> None:
        if not self.settings_vars:
            return
        for key, var in self.settings_vars.items():
            if key in view_settings:
                var.set(str(view_settings.get(key, "")))

    def _dispatch(self, name: str) -> Callable:
        return self.callbacks.get(name, lambda *args, **kwargs: None)

    def _pick_color(self, parent: tk.Toplevel, target: tk.StringVar) -> None:
        color = colorchooser.askcolor(initialcolor=target.get(), parent=parent)
        if color and color[1]:
            target.set(color[1])

    def get_settings(self) -> Dict[str, str]:
        return {key: var.get() for key, var in self.settings_vars.items()}

    def destroy(self) -> None:
        if self.window and self.window.winfo_exists():
            self.window.destroy()
        self.window = None
        self.settings_vars = {}
