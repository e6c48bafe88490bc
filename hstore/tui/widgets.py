"""hstore TUI Widgets - Custom panels for the hstore viewer."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.message import Message
from textual.reactive import reactive
from textual.widgets import Label, ListItem, ListView, Static

from hstore.spec import NULL_TOKEN


class SummaryPanel(Static):
    """Sidebar panel showing entry counts."""

    DEFAULT_CSS = """
    SummaryPanel {
        width: 28;
        border: solid $accent;
        padding: 1;
    }
    SummaryPanel .summary-title {
        text-style: bold;
        color: $text;
        margin-bottom: 1;
    }
    SummaryPanel .summary-key {
        color: $text-muted;
    }
    """

    def __init__(self, entry_count: int, null_count: int, literal_length: int, **kwargs) -> None:
        super().__init__(**kwargs)
        self._entry_count = entry_count
        self._null_count = null_count
        self._literal_length = literal_length

    def compose(self) -> ComposeResult:
        yield Label("hstore", classes="summary-title")
        yield Label("entries:", classes="summary-key")
        yield Label(f"  {self._entry_count}")
        yield Label("null values:", classes="summary-key")
        yield Label(f"  {self._null_count}")
        yield Label("literal length:", classes="summary-key")
        yield Label(f"  {self._literal_length}")


class KeyList(ListView):
    """List of keys in the hstore. Supports keyboard navigation."""

    DEFAULT_CSS = """
    KeyList {
        width: 32;
        border: solid $accent;
    }
    KeyList > ListItem {
        padding: 0 1;
    }
    KeyList > ListItem.--highlight {
        background: $accent;
    }
    """

    class KeySelected(Message):
        """Fired when a key is highlighted or selected."""

        def __init__(self, key: str) -> None:
            self.key = key
            super().__init__()

    def __init__(self, keys: list[str], **kwargs) -> None:
        self._keys = keys
        super().__init__(**kwargs)

    def compose(self) -> ComposeResult:
        for key in self._keys:
            yield ListItem(Label(key, markup=False))

    def set_keys(self, keys: list[str]) -> None:
        """Replace the listed keys in place."""
        self._keys = keys
        self.clear()
        self.extend(ListItem(Label(key, markup=False)) for key in keys)

    def _post_current(self) -> None:
        idx = self.index or 0
        if 0 <= idx < len(self._keys):
            self.post_message(self.KeySelected(self._keys[idx]))

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        self._post_current()

    def on_list_view_highlighted(self, event: ListView.Highlighted) -> None:
        self._post_current()


class ValuePanel(Static):
    """Shows the value of the selected key. NULL is shown dimmed."""

    DEFAULT_CSS = """
    ValuePanel {
        border: solid $accent;
        padding: 1;
        overflow: auto;
    }
    ValuePanel .value-title {
        text-style: bold;
        color: $accent;
        margin-bottom: 1;
    }
    ValuePanel .value-null {
        color: $text-muted;
        text-style: italic;
    }
    """

    current_key = reactive("")

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._title_widget: Label | None = None
        self._body_widget: Static | None = None

    def compose(self) -> ComposeResult:
        self._title_widget = Label("Select a key", classes="value-title", markup=False)
        self._body_widget = Static("", markup=False)
        yield self._title_widget
        yield self._body_widget

    def show_value(self, key: str, value: str | None) -> None:
        self.current_key = key
        if self._title_widget:
            self._title_widget.update(f"--- {key} ---")
        if self._body_widget:
            self._body_widget.set_class(value is None, "value-null")
            self._body_widget.update(NULL_TOKEN if value is None else value)
        self.scroll_home()
