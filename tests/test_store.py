import json

from store import StoredState, default_state_path, load_state, normalize_settings, save_state

DEFAULTS = {
    "search_debounce_ms": 1000,
    "node_display_limit": 50,
    "filter_max_depth": 2,
    "mode": "diagram",
    "diagram_layout": "tree",
    "map_bg": "#ffffff",
}


def test_normalize_settings_clamps_and_ignores_unknown() -> None:
    settings = normalize_settings(
        {
            "search_debounce_ms": "99999",
            "node_display_limit": 0,
            "filter_max_depth": "abc",
            "mode": "LIST",
            "diagram_layout": "radial",
            "map_bg": "  #000000 ",
            "unknown": 5,
        },
        DEFAULTS,
    )
    assert settings["search_debounce_ms"] == 10000
    assert settings["node_display_limit"] == 1
    assert settings["filter_max_depth"] == 2
    assert settings["mode"] == "list"
    assert settings["diagram_layout"] == "tree"
    assert settings["map_bg"] == "#000000"
    assert "unknown" not in settings


def test_state_round_trip(tmp_path) -> None:
    path = str(tmp_path / "nested" / "state.json")
    save_state(path, StoredState(geometry="800x600+1+1", last_directory="/maps", view_settings={"node_display_limit": 70}))
    state = load_state(path, DEFAULTS)
    assert state.geometry == "800x600+1+1"
    assert state.last_directory == "/maps"
    assert state.view_settings["node_display_limit"] == 70
    assert state.view_settings["mode"] == "diagram"


def test_load_state_ignores_corrupt_file(tmp_path) -> None:
    path = tmp_path / "state.json"
    path.write_text("{not json", encoding="utf-8")
    state = load_state(str(path), DEFAULTS)
    assert state.view_settings == DEFAULTS
    path.write_text(json.dumps(["list"]), encoding="utf-8")
    assert load_state(str(path), DEFAULTS).geometry == ""


def test_default_state_path_respects_env(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("MMV_DATA_DIR", str(tmp_path))
    assert default_state_path() == str(tmp_path / "mmv_state.json")
