import tkinter as tk
import tkinter.font as tkfont
from tkinter import ttk
from typing import Callable, Dict, List, Optional, Tuple

from models import DiagramScene, LayoutNode, MindNode, ViewTransform
from utils import casefold_contains

ZOOM_STEP = 1.1
ZOOM_MIN = 0.1
ZOOM_MAX = 4.0


class MainView:
    def __init__(self, root: tk.Tk, callbacks: dict) -> None:
        self.root = root
        self.callbacks = callbacks
        self._map_style: Dict[str, object] = {}
        self._font_family: str = tkfont.nametofont("TkDefaultFont").actual("family")
        self._fonts: Dict[int, tkfont.Font] = {}
        self._scene: Optional[DiagramScene] = None
        self._transform = ViewTransform()
        self._node_items: Dict[str, Tuple[int, int]] = {}
        self._link_items: List[Tuple[int, str, str]] = []
        self._drag_origin: Optional[Tuple[int, int]] = None
        self._about_window: Optional[tk.Toplevel] = None

        self._build_menubar()

        main = ttk.Frame(root, padding=10)
        main.grid(row=0, column=0, sticky="nsew")
        root.rowconfigure(0, weight=1)
        root.columnconfigure(0, weight=1)

        toolbar = ttk.Frame(main)
        toolbar.grid(row=0, column=0, sticky="ew", pady=(0, 10))
        toolbar.columnconfigure(6, weight=1)

        self.open_btn = ttk.Button(toolbar, text="Open...", command=self._dispatch("on_open"))
        self.open_btn.grid(row=0, column=0, padx=(0, 12))

        view_frame = ttk.Frame(toolbar)
        view_frame.grid(row=0, column=1, padx=(0, 12))
        self.view_var = tk.StringVar(value="diagram")
        self.diagram_view_btn = ttk.Radiobutton(
            view_frame,
            text="DIAGRAM",
            value="diagram",
            variable=self.view_var,
            command=lambda: self._dispatch("on_view_change")("diagram"),
        )
        self.diagram_view_btn.grid(row=0, column=0, padx=(0, 6))
        self.list_view_btn = ttk.Radiobutton(
            view_frame,
            text="LIST",
            value="list",
            variable=self.view_var,
            command=lambda: self._dispatch("on_view_change")("list"),
        )
        self.list_view_btn.grid(row=0, column=1)

        ttk.Label(toolbar, text="Layout").grid(row=0, column=2, padx=(0, 4))
        self.layout_var = tk.StringVar(value="tree")
        self.layout_select = ttk.Combobox(
            toolbar, textvariable=self.layout_var, values=["tree", "force"], width=8, state="readonly"
        )
        self.layout_select.grid(row=0, column=3, padx=(0, 12))
        self.layout_select.bind(
            "<<ComboboxSelected>>", lambda _e: self._dispatch("on_layout_change")(self.layout_var.get())
        )

        ttk.Label(toolbar, text="Depth").grid(row=0, column=4, padx=(0, 4))
        self.depth_var = tk.StringVar(value="2")
        self.depth_spin = ttk.Spinbox(
            toolbar,
            from_=0,
            to=50,
            textvariable=self.depth_var,
            width=4,
            command=lambda: self._dispatch("on_depth_change")(self.depth_var.get()),
        )
        self.depth_spin.grid(row=0, column=5, padx=(0, 12), sticky="w")
        self.depth_spin.bind("<Return>", lambda _e: self._dispatch("on_depth_change")(self.depth_var.get()))

        search_frame = ttk.Frame(toolbar)
        search_frame.grid(row=0, column=6, sticky="ew")
        search_frame.columnconfigure(1, weight=1)
        ttk.Label(search_frame, text="Search").grid(row=0, column=0, padx=(0, 4))
        self.filter_var = tk.StringVar()
        self.filter_var.trace_add("write", lambda *_: self._dispatch("on_filter_change")(self.filter_var.get()))
        self.filter_entry = ttk.Entry(search_frame, textvariable=self.filter_var, width=24)
        self.filter_entry.grid(row=0, column=1, sticky="ew")

        self.clear_filter_btn = ttk.Button(toolbar, text="Clear", command=self._dispatch("on_clear_filter"))
        self.clear_filter_btn.grid(row=0, column=7, padx=(8, 8))

        self.settings_btn = ttk.Button(toolbar, text="\u2699", width=3, command=self._dispatch("on_open_settings"))
        self.settings_btn.grid(row=0, column=8)

        body = ttk.Frame(main)
        body.grid(row=1, column=0, sticky="nsew")
        main.rowconfigure(1, weight=1)
        main.columnconfigure(0, weight=1)
        body.rowconfigure(0, weight=1)
        body.columnconfigure(0, weight=1)

        self.diagram_frame = ttk.Frame(body)
        self.diagram_frame.grid(row=0, column=0, sticky="nsew")
        self.diagram_frame.rowconfigure(0, weight=1)
        self.diagram_frame.columnconfigure(0, weight=1)
        self.list_frame = ttk.Frame(body)
        self.list_frame.grid(row=0, column=0, sticky="nsew")
        self.list_frame.rowconfigure(0, weight=1)
        self.list_frame.columnconfigure(0, weight=1)
        self.list_frame.grid_remove()

        self.map_canvas = tk.Canvas(self.diagram_frame, highlightthickness=0, background="white")
        self.map_canvas.grid(row=0, column=0, sticky="nsew")

        self.list_tree = ttk.Treeview(self.list_frame, columns=("attributes",), show="tree headings", selectmode="browse")
        list_scrollbar = ttk.Scrollbar(self.list_frame, orient=tk.VERTICAL, command=self.list_tree.yview)
        self.list_tree.configure(yscrollcommand=list_scrollbar.set)
        self.list_tree.grid(row=0, column=0, sticky="nsew")
        list_scrollbar.grid(row=0, column=1, sticky="ns")
        self.list_tree.heading("#0", text="Node", anchor=tk.W)
        self.list_tree.column("#0", width=420, stretch=True)
        self.list_tree.heading("attributes", text="Attributes", anchor=tk.W)
        self.list_tree.column("attributes", width=320, stretch=True)

        self.status_var = tk.StringVar(value="Open a mind map to begin.")
        status_frame = ttk.Frame(main)
        status_frame.grid(row=2, column=0, sticky="ew", pady=(8, 0))
        status_frame.columnconfigure(0, weight=1)
        self.status = ttk.Label(status_frame, textvariable=self.status_var, anchor=tk.W)
        self.status.grid(row=0, column=0, sticky="ew")

        self.map_canvas.bind("<Configure>", self._on_canvas_configure, add=True)
        self.map_canvas.bind("<ButtonPress-1>", self._on_drag_start, add=True)
        self.map_canvas.bind("<B1-Motion>", self._on_drag_motion, add=True)
        self.map_canvas.bind("<ButtonRelease-1>", self._on_drag_end, add=True)
        self.map_canvas.bind("<MouseWheel>", self._on_map_mousewheel, add=True)
        self.map_canvas.bind("<Button-4>", self._on_map_mousewheel, add=True)
        self.map_canvas.bind("<Button-5>", self._on_map_mousewheel, add=True)
        self.root.protocol("WM_DELETE_WINDOW", self._dispatch("on_close"))

    def _dispatch(self, name: str) -> Callable:
        return self.callbacks.get(name, lambda *args, **kwargs: None)

    def _build_menubar(self) -> None:
        menubar = tk.Menu(self.root)
        file_menu = tk.Menu(menubar, tearoff=0)
        file_menu.add_command(label="Open Mind Map...", command=self._dispatch("on_open"))
        file_menu.add_separator()
        file_menu.add_command(label="Settings...", command=self._dispatch("on_open_settings"))
        file_menu.add_separator()
        file_menu.add_command(label="Exit", command=self._dispatch("on_close"))
        menubar.add_cascade(label="File", menu=file_menu)
        help_menu = tk.Menu(menubar, tearoff=0)
        help_menu.add_command(label="About", command=self._show_about)
        menubar.add_cascade(label="Help", menu=help_menu)
        self.root.config(menu=menubar)
        self.file_menu = file_menu

    def _show_about(self) -> None:
        if self._about_window and self._about_window.winfo_exists():
            self._about_window.lift()
            return
        win = tk.Toplevel(self.root)
        win.title("About")
        win.transient(self.root)
        win.resizable(False, False)
        frame = ttk.Frame(win, padding=16)
        frame.grid(row=0, column=0, sticky="nsew")
        ttk.Label(frame, text="Mind Map Viewer", font=("TkDefaultFont", 12, "bold")).grid(row=0, column=0, sticky="w")
        ttk.Label(
            frame,
            text=(
                "Opens Freeplane / FreeMind (.mm) files.\n"
                "Type in Search to narrow the map; Depth controls how much\n"
                "of each match's subtree is shown.\n"
                "Drag to pan the diagram, use the mouse wheel to zoom."
            ),
            justify=tk.LEFT,
        ).grid(row=1, column=0, sticky="w", pady=(8, 12))
        ttk.Button(frame, text="Close", command=win.destroy).grid(row=2, column=0, sticky="e")
        self._about_window = win

    def set_status(self, text: str) -> None:
        self.status_var.set(text)

    def set_filter(self, value: str) -> None:
        self.filter_var.set(value)

    def set_depth(self, value: int) -> None:
        self.depth_var.set(str(value))

    def set_layout(self, layout: str) -> None:
        self.layout_var.set(layout)

    def set_view_mode(self, mode: str) -> None:
        if mode not in {"diagram", "list"}:
            mode = "diagram"
        self.view_var.set(mode)
        if mode == "list":
            self.list_frame.grid()
            self.diagram_frame.grid_remove()
        else:
            self.diagram_frame.grid()
            self.list_frame.grid_remove()
        self.layout_select.configure(state="readonly" if mode == "diagram" else "disabled")

    def set_map_style(self, style: Dict[str, object]) -> None:
        self._map_style = dict(style)
        family = str(self._map_style.get("font_family", "") or "")
        if family and family != self._font_family:
            self._font_family = family
            self._fonts = {}
        bg = str(self._map_style.get("map_bg", "white"))
        self.map_canvas.configure(background=bg)

    # --- Text measurement -------------------------------------------------

    def _font(self, size: int) -> tkfont.Font:
        font = self._fonts.get(size)
        if font is None:
            font = tkfont.Font(root=self.root, family=self._font_family, size=size)
            self._fonts[size] = font
        return font

    def measure_text(self, label: str, font_size: int) -> float:
        return float(self._font(int(font_size)).measure(label))

    def viewport_size(self) -> Tuple[float, float]:
        width = self.map_canvas.winfo_width()
        height = self.map_canvas.winfo_height()
        if width <= 1 or height <= 1:
            return (800.0, 600.0)
        return (float(width), float(height))

    # --- Messages ---------------------------------------------------------

    def show_message(self, text: str) -> None:
        """Replace both the diagram and the list with a centered message."""
        self._clear_diagram()
        width, height = self.viewport_size()
        text_color = str(self._map_style.get("map_text", "black"))
        self.map_canvas.create_text(
            width / 2, height / 2, text=text, fill=text_color, justify=tk.CENTER, width=max(200, width - 40)
        )
        self.list_tree.delete(*self.list_tree.get_children())
        self.list_tree.insert("", tk.END, text=text, values=("",))

    # --- Diagram ----------------------------------------------------------

    def _clear_diagram(self) -> None:
        self.map_canvas.delete("all")
        self._node_items = {}
        self._link_items = []
        self._scene = None

    def _node_color(self, item: LayoutNode, query: str) -> str:
        if query and casefold_contains(item.name, query):
            return str(self._map_style.get("node_match", "orange"))
        if item.has_children:
            return str(self._map_style.get("node_internal", "#555555"))
        return str(self._map_style.get("node_leaf", "#999999"))

    def draw_diagram(self, scene: DiagramScene) -> None:
        self._clear_diagram()
        self._scene = scene
        self._transform = scene.transform
        self._draw_scene()

    def _draw_scene(self) -> None:
        scene = self._scene
        if scene is None:
            return
        canvas = self.map_canvas
        canvas.delete("all")
        self._node_items = {}
        self._link_items = []
        edge_color = str(self._map_style.get("map_edge", "#cccccc"))
        text_color = str(self._map_style.get("map_text", "#1f2933"))
        box_fill = str(self._map_style.get("node_fill", "#ffffff"))
        font_size = int(self._map_style.get("font_size", 10) or 10)
        scale = self._transform.k
        draw_size = max(1, int(round(font_size * scale)))
        font = self._font(draw_size)
        tree_mode = scene.layout == "tree"

        # Links first so nodes sit above them.
        for source_id, target_id in scene.links:
            source = scene.nodes.get(source_id)
            target = scene.nodes.get(target_id)
            if source is None or target is None:
                continue
            line_id = canvas.create_line(
                *self._link_points(source, target, tree_mode),
                fill=edge_color,
                width=1.5,
                smooth="raw" if tree_mode else False,
                tags=("map", "edge"),
            )
            self._link_items.append((line_id, source_id, target_id))

        for node_id, item in scene.nodes.items():
            x, y = self._transform.apply(item.x, item.y)
            color = self._node_color(item, scene.query)
            label = "\n".join(item.lines)
            if tree_mode:
                radius = item.radius * scale
                marker_id = canvas.create_oval(
                    x - radius, y - radius, x + radius, y + radius, fill=color, outline="", tags=("map", "node")
                )
                offset = 13 * scale
                anchor = tk.E if item.has_children else tk.W
                text_id = canvas.create_text(
                    x - offset if item.has_children else x + offset,
                    y,
                    text=label,
                    anchor=anchor,
                    justify=tk.RIGHT if item.has_children else tk.LEFT,
                    fill=text_color,
                    font=font,
                    tags=("map", "node"),
                )
                self._node_items[node_id] = (marker_id, text_id)
            else:
                text_id = canvas.create_text(
                    x, y, text=label, justify=tk.CENTER, fill=text_color, font=font, tags=("map", "node")
                )
                x1, y1, x2, y2 = canvas.bbox(text_id) or (x, y, x, y)
                box_id = canvas.create_rectangle(
                    x1 - 4, y1 - 2, x2 + 4, y2 + 2, fill=box_fill, outline=color, width=2, tags=("map", "node")
                )
                canvas.tag_raise(text_id, box_id)
                self._node_items[node_id] = (box_id, text_id)

    def _link_points(self, source: LayoutNode, target: LayoutNode, tree_mode: bool) -> List[float]:
        sx, sy = self._transform.apply(source.x, source.y)
        tx, ty = self._transform.apply(target.x, target.y)
        if not tree_mode:
            return [sx, sy, tx, ty]
        mid_x = (sx + tx) / 2
        return [sx, sy, mid_x, sy, mid_x, ty, tx, ty]

    def update_positions(self, positions: Dict[str, Tuple[float, float]]) -> None:
        """Move already-drawn force-layout items to new positions."""
        scene = self._scene
        if scene is None:
            return
        canvas = self.map_canvas
        for node_id, (world_x, world_y) in positions.items():
            items = self._node_items.get(node_id)
            if items is None:
                continue
            box_id, text_id = items
            x, y = self._transform.apply(world_x, world_y)
            canvas.coords(text_id, x, y)
            x1, y1, x2, y2 = canvas.bbox(text_id) or (x, y, x, y)
            canvas.coords(box_id, x1 - 4, y1 - 2, x2 + 4, y2 + 2)
        for line_id, source_id, target_id in self._link_items:
            source = scene.nodes.get(source_id)
            target = scene.nodes.get(target_id)
            if source is None or target is None:
                continue
            canvas.coords(line_id, *self._link_points(source, target, False))

    def rendered_label_sizes(self) -> Dict[str, Tuple[float, float]]:
        """Width/height of each drawn label, in layout (unscaled) units."""
        sizes: Dict[str, Tuple[float, float]] = {}
        scale = self._transform.k or 1.0
        for node_id, (_marker, text_id) in self._node_items.items():
            bbox = self.map_canvas.bbox(text_id)
            if not bbox:
                continue
            x1, y1, x2, y2 = bbox
            sizes[node_id] = ((x2 - x1) / scale, (y2 - y1) / scale)
        return sizes

    def _on_canvas_configure(self, event: tk.Event) -> None:
        self._dispatch("on_resize")(event.width, event.height)

    def _on_drag_start(self, event: tk.Event) -> None:
        self._drag_origin = (event.x, event.y)

    def _on_drag_motion(self, event: tk.Event) -> None:
        if self._drag_origin is None or self._scene is None:
            return
        dx = event.x - self._drag_origin[0]
        dy = event.y - self._drag_origin[1]
        self._drag_origin = (event.x, event.y)
        self.map_canvas.move("map", dx, dy)
        t = self._transform
        self._transform = ViewTransform(t.x + dx, t.y + dy, t.k)

    def _on_drag_end(self, _event: tk.Event) -> None:
        self._drag_origin = None

    def _on_map_mousewheel(self, event: tk.Event) -> None:
        if self._scene is None:
            return
        delta = 0
        if getattr(event, "delta", 0):
            delta = 1 if event.delta > 0 else -1
        elif getattr(event, "num", None) == 4:
            delta = 1
        elif getattr(event, "num", None) == 5:
            delta = -1
        if delta == 0:
            return
        t = self._transform
        k = max(ZOOM_MIN, min(ZOOM_MAX, t.k * (ZOOM_STEP if delta > 0 else 1 / ZOOM_STEP)))
        # Keep the point under the cursor fixed.
        world_x = (event.x - t.x) / t.k
        world_y = (event.y - t.y) / t.k
        self._transform = ViewTransform(event.x - world_x * k, event.y - world_y * k, k)
        self._draw_scene()

    # --- List -------------------------------------------------------------

    def populate_list(self, tree: MindNode, query: str = "") -> None:
        self.list_tree.delete(*self.list_tree.get_children())
        match_color = str(self._map_style.get("node_match", "orange"))
        self.list_tree.tag_configure("match", foreground=match_color)

        def insert(parent: str, node: MindNode) -> None:
            attrs = ", ".join(f"{key}={value}" for key, value in sorted(node.attributes.items()) if key not in ("ID", "TEXT"))
            tags = ("match",) if query and casefold_contains(node.name, query) else ()
            item_id = self.list_tree.insert(parent, tk.END, text=node.name or "(untitled)", values=(attrs,), open=True, tags=tags)
            for child in node.children:
                insert(item_id, child)

        insert("", tree)
