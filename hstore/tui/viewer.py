"""hstore TUI Viewer - Main Textual app with 3-panel layout."""

from __future__ import annotations

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.widgets import Footer, Header, Input

from hstore.document import HStore
from hstore.tui.widgets import KeyList, SummaryPanel, ValuePanel


class HStoreViewerApp(App):
    """TUI viewer for an hstore value. 3-panel layout with keyboard navigation."""

    TITLE = "hstore Viewer"
    CSS = """
    Screen {
        layout: vertical;
    }
    #main-area {
        height: 1fr;
    }
    #search-bar {
        dock: bottom;
        display: none;
        height: 3;
        padding: 0 1;
    }
    #search-bar.visible {
        display: block;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit", show=True),
        Binding("slash", "toggle_search", "Filter", show=True),
        Binding("escape", "close_search", "Close filter", show=False),
        Binding("j", "next_key", "Next", show=True),
        Binding("k", "prev_key", "Prev", show=True),
    ]

    def __init__(self, hs: HStore, title: str = "", **kwargs) -> None:
        super().__init__(**kwargs)
        self._hs = hs
        self._source_title = title
        self._all_keys: list[str] = list(hs.keys())

    def compose(self) -> ComposeResult:
        if self._source_title:
            self.title = f"hstore Viewer - {self._source_title}"

        yield Header()

        with Horizontal(id="main-area"):
            yield SummaryPanel(
                entry_count=len(self._hs),
                null_count=sum(1 for v in self._hs.values() if v is None),
                literal_length=len(self._hs.to_text()),
                id="summary",
            )
            yield KeyList(keys=self._all_keys, id="keys")
            yield ValuePanel(id="value")

        yield Input(placeholder="Filter keys... (Escape to close)", id="search-bar")
        yield Footer()

    def on_mount(self) -> None:
        """Show the first entry and focus the key list."""
        if self._all_keys:
            self._show(self._all_keys[0])
        self.query_one("#keys", KeyList).focus()

    def _show(self, key: str) -> None:
        panel = self.query_one("#value", ValuePanel)
        panel.show_value(key, self._hs.get(key))

    def on_key_list_key_selected(self, event: KeyList.KeySelected) -> None:
        self._show(event.key)

    def action_next_key(self) -> None:
        self.query_one("#keys", KeyList).action_cursor_down()

    def action_prev_key(self) -> None:
        self.query_one("#keys", KeyList).action_cursor_up()

    def action_toggle_search(self) -> None:
        search = self.query_one("#search-bar", Input)
        search.toggle_class("visible")
        if search.has_class("visible"):
            search.focus()
        else:
            self.action_close_search()

    def action_close_search(self) -> None:
        search = self.query_one("#search-bar", Input)
        search.remove_class("visible")
        search.value = ""
        self._update_key_list(self._all_keys)
        self.query_one("#keys", KeyList).focus()

    def on_input_changed(self, event: Input.Changed) -> None:
        """Filter keys as the user types; values are searched too."""
        if event.input.id != "search-bar":
            return
        self._update_key_list(filter_keys(self._hs, event.value))

    def _update_key_list(self, keys: list[str]) -> None:
        self.query_one("#keys", KeyList).set_keys(keys)
        if keys:
            self._show(keys[0])


def filter_keys(hs: HStore, query: str) -> list[str]:
    """Keys whose key or value contains ``query`` (case-insensitive)."""
    query = query.lower().strip()
    if not query:
        return list(hs.keys())
    return [
        key for key, value in hs.items()
        if query in key.lower() or (value is not None and query in value.lower())
    ]


def run_viewer(hs: HStore, title: str = "") -> None:
    """Launch the hstore TUI viewer."""
    HStoreViewerApp(hs, title=title).run()
