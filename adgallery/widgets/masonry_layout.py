"""Masonry column packer for ad creative tiles."""

from dataclasses import dataclass

from adgallery.utils.ad_size import parse_ad_size
from adgallery.utils.flow_log import log_flow

# Card chrome around the creative: 16px padding on each side, header + footer.
ITEM_PADDING_WIDTH = 32
ITEM_PADDING_HEIGHT = 80
DEFAULT_GUTTER = 10

STRATEGY_COMPAT = 'compat'
STRATEGY_BALANCED = 'balanced'
STRATEGIES = (STRATEGY_COMPAT, STRATEGY_BALANCED)


@dataclass(eq=False)
class LayoutItem:
    """One tile to place; identity is by object, `id` is for the host."""
    id: str
    declared_size: str
    payload: object = None


def item_dimensions(declared_size: str) -> tuple[int, int]:
    """Padded (width, height) of a tile for the given size token."""
    width, height = parse_ad_size(declared_size)
    return width + ITEM_PADDING_WIDTH, height + ITEM_PADDING_HEIGHT


def _pack_compat(items, container_width, gutter):
    columns: list[list[LayoutItem]] = []
    column_heights: list[int] = []
    total_width = 0
    current_col = 0

    for item in items:
        item_width, item_height = item_dimensions(item.declared_size)

        # Wrap back to the first column when the row is full.
        if total_width + item_width + gutter > container_width:
            total_width = 0
            current_col = 0

        if current_col >= len(columns):
            columns.append([])
            column_heights.append(0)

        columns[current_col].append(item)
        column_heights[current_col] += item_height + gutter
        total_width += item_width + gutter
        current_col += 1

    return columns, column_heights


def _pack_balanced(items, container_width, gutter):
    dimensions = [item_dimensions(item.declared_size) for item in items]
    widest = max(width for width, _ in dimensions)
    num_columns = max(1, (container_width + gutter) // (widest + gutter))
    num_columns = min(num_columns, len(items))

    columns: list[list[LayoutItem]] = [[] for _ in range(num_columns)]
    column_heights = [0] * num_columns
    for item, (_, item_height) in zip(items, dimensions):
        shortest_col = min(range(num_columns), key=lambda i: column_heights[i])
        columns[shortest_col].append(item)
        column_heights[shortest_col] += item_height + gutter

    return columns, column_heights


def pack_columns_with_heights(items, container_width, gutter=DEFAULT_GUTTER,
                              strategy=STRATEGY_COMPAT):
    """Like `pack_columns`, also returning the per-column heights."""
    items = list(items)
    if not items:
        return [], []
    gutter = max(0, int(gutter))

    if container_width <= 0:
        # No measurement yet: everything in one column, input order.
        heights = sum(item_dimensions(item.declared_size)[1] + gutter for item in items)
        return [items], [heights]

    if strategy == STRATEGY_BALANCED:
        return _pack_balanced(items, container_width, gutter)
    return _pack_compat(items, container_width, gutter)


def pack_columns(items, container_width, gutter=DEFAULT_GUTTER,
                 strategy=STRATEGY_COMPAT) -> list[list[LayoutItem]]:
    """
    Distribute items into columns.

    Args:
        items: LayoutItems in display order
        container_width: Available width in pixels
        gutter: Spacing between tiles in pixels
        strategy: 'compat' greedy row-wrap or 'balanced' shortest-column

    Returns:
        List of columns, each a list of the input item objects
    """
    columns, _ = pack_columns_with_heights(items, container_width, gutter, strategy)
    return columns


class MasonryLayout:
    """Keeps the inputs of the packer and recomputes the columns when one changes."""

    def __init__(self, gutter: int = DEFAULT_GUTTER, strategy: str = STRATEGY_COMPAT):
        """
        Initialize masonry layout.

        Args:
            gutter: Spacing between tiles in pixels
            strategy: Packing strategy, see STRATEGIES
        """
        self.gutter = max(0, int(gutter))
        self.strategy = strategy if strategy in STRATEGIES else STRATEGY_COMPAT
        self.container_width = 0
        self._items: list[LayoutItem] = []
        self._columns: list[list[LayoutItem]] = []
        self._column_heights: list[int] = []
        self._added_keys: list[int] = []
        self._removed_keys: list[int] = []

    def set_items(self, items):
        self._items = list(items)
        self._recalculate('items')

    def set_container_width(self, width: int):
        width = int(width)
        if width == self.container_width:
            return
        self.container_width = width
        self._recalculate('resize')

    def set_gutter(self, gutter: int):
        gutter = max(0, int(gutter))
        if gutter == self.gutter:
            return
        self.gutter = gutter
        self._recalculate('gutter')

    def set_strategy(self, strategy: str):
        if strategy not in STRATEGIES or strategy == self.strategy:
            return
        self.strategy = strategy
        self._recalculate('strategy')

    def _recalculate(self, reason: str):
        previous_keys = set(self.column_keys())
        self._columns, self._column_heights = pack_columns_with_heights(
            self._items, self.container_width, self.gutter, self.strategy)
        current_keys = set(self.column_keys())
        self._added_keys = sorted(current_keys - previous_keys)
        self._removed_keys = sorted(previous_keys - current_keys)
        log_flow(
            "MASONRY",
            f"Calc done reason={reason} items={len(self._items)} "
            f"width={self.container_width} columns={len(self._columns)}",
            throttle_key="masonry_calc",
            every_s=0.25,
        )

    @property
    def items(self) -> list[LayoutItem]:
        return list(self._items)

    @property
    def columns(self) -> list[list[LayoutItem]]:
        return self._columns

    @property
    def column_heights(self) -> list[int]:
        return list(self._column_heights)

    def column_keys(self) -> list[int]:
        """Stable per-column keys (the column index) for host-side animation."""
        return list(range(len(self._columns)))

    @property
    def added_column_keys(self) -> list[int]:
        return list(self._added_keys)

    @property
    def removed_column_keys(self) -> list[int]:
        return list(self._removed_keys)

    def get_total_height(self) -> int:
        return max(self._column_heights, default=0)
