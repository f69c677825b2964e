"""Type-ahead picker over the size catalog.

Used as the size editor of a variation's size row. The catalog is passed
in already fetched; the selector never talks to the backend.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from shopadmin.forms import unlisted_size_label
from shopadmin.models import SizeOption

__all__ = ["SizeSelector", "SizeRowChoices", "filter_sizes", "size_row_choices"]


def filter_sizes(catalog: Sequence[SizeOption], query: str) -> List[SizeOption]:
    """Case-insensitive substring match against "EU x / US y", catalog order kept."""
    needle = (query or "").strip().lower()
    if not needle:
        return list(catalog)
    return [size for size in catalog if needle in size.label.lower()]


class SizeSelector:
    """Open/closed state, a search buffer and one committed selection.

    Typing only edits the buffer. The selection changes on ``select`` or
    ``clear``; ``blur`` throws the pending buffer away.
    """

    def __init__(self, catalog: Sequence[SizeOption], selected_id: str = ""):
        self.catalog = list(catalog)
        self.is_open = False
        self.query = ""
        self.selected_id = ""
        if selected_id:
            self._lookup(selected_id)
            self.selected_id = selected_id

    def _lookup(self, size_id: str) -> SizeOption:
        for size in self.catalog:
            if size.id == size_id:
                return size
        raise KeyError(size_id)

    @property
    def selected(self) -> Optional[SizeOption]:
        if not self.selected_id:
            return None
        return self._lookup(self.selected_id)

    @property
    def display_text(self) -> str:
        """What the input shows: the buffer while editing, else the committed label."""
        if self.is_open:
            return self.query
        selected = self.selected
        return selected.label if selected else ""

    def open(self) -> None:
        self.is_open = True

    def type_text(self, text: str) -> None:
        self.query = text
        self.is_open = True

    def filtered_options(self) -> List[SizeOption]:
        return filter_sizes(self.catalog, self.query)

    def select(self, size_id: str) -> SizeOption:
        """Commit a catalog entry and close the dropdown."""
        size = self._lookup(size_id)
        self.selected_id = size_id
        self.query = ""
        self.is_open = False
        return size

    def clear(self) -> None:
        self.selected_id = ""
        self.query = ""

    def blur(self) -> None:
        """Focus lost without a commit: drop the pending edit."""
        self.query = ""
        self.is_open = False


@dataclass
class SizeRowChoices:
    """What one size row of the product form shows."""

    query: str
    selected_id: str
    options: List[Tuple[str, str]] = field(default_factory=list)  # (value, label)


def size_row_choices(catalog: Sequence[SizeOption], size_id: str = "", query: str = "") -> SizeRowChoices:
    """Options for one size row, narrowed by the row's search text.

    The row's current value is always offered, so a re-render never loses a
    selection, including one the catalog does not list.
    """
    try:
        selector = SizeSelector(catalog, size_id)
    except KeyError:
        selector = SizeSelector(catalog)
    committed = selector.selected
    if query.strip() and query != selector.display_text:
        selector.type_text(query)

    options = [(size.id, size.label) for size in selector.filtered_options() if size.id]
    if size_id and all(value != size_id for value, _ in options):
        if committed is not None:
            label = committed.label
        else:
            label = f"{unlisted_size_label(size_id) or size_id} (not in catalog)"
        options.insert(0, (size_id, label))
    return SizeRowChoices(query=selector.display_text, selected_id=size_id, options=options)
