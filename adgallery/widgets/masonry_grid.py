from PySide6.QtCore import (QEasingCurve, QParallelAnimationGroup, QPoint, QPropertyAnimation, QRect,
                            QSequentialAnimationGroup, QSize, Qt, QTimer)
from PySide6.QtWidgets import (QAbstractScrollArea, QGraphicsOpacityEffect, QLayout, QVBoxLayout,
                               QWidget, QWidgetItem)

from adgallery.utils.flow_log import log_flow
from adgallery.widgets.masonry_layout import DEFAULT_GUTTER, STRATEGY_COMPAT, LayoutItem, MasonryLayout

COLUMN_FADE_MS = 300
COLUMN_STAGGER_MS = 100
COLUMN_SLIDE_PX = 20


class ColumnFlowLayout(QLayout):
    """
    Places column widgets left to right and wraps them onto a new line.

    Column i is as wide as its widest tile, so the columns of a row can add
    up to more than the row width the packer was given. Wrapping keeps the
    minimum width of the grid at its widest column.
    """

    def __init__(self, parent=None, spacing: int = 0):
        super().__init__(parent)
        self._items: list[QWidgetItem] = []
        self.setContentsMargins(0, 0, 0, 0)
        self.setSpacing(spacing)

    def addItem(self, item):
        self._items.append(item)

    def insertWidget(self, index: int, widget: QWidget):
        self.addChildWidget(widget)
        self._items.insert(index, QWidgetItem(widget))
        self.invalidate()

    def count(self) -> int:
        return len(self._items)

    def itemAt(self, index: int):
        if 0 <= index < len(self._items):
            return self._items[index]
        return None

    def takeAt(self, index: int):
        if 0 <= index < len(self._items):
            return self._items.pop(index)
        return None

    def expandingDirections(self):
        return Qt.Orientation(0)

    def hasHeightForWidth(self) -> bool:
        return True

    def heightForWidth(self, width: int) -> int:
        return self._place(QRect(0, 0, width, 0), apply=False)

    def setGeometry(self, rect: QRect):
        super().setGeometry(rect)
        self._place(rect, apply=True)

    def sizeHint(self) -> QSize:
        return self.minimumSize()

    def minimumSize(self) -> QSize:
        size = QSize()
        for item in self._items:
            if not item.isEmpty():
                size = size.expandedTo(item.minimumSize())
        return size

    def _place(self, rect: QRect, apply: bool) -> int:
        spacing = self.spacing()
        x, y = rect.x(), rect.y()
        line_height = 0
        for item in self._items:
            if item.isEmpty():
                continue
            hint = item.sizeHint()
            if x > rect.x() and x + hint.width() > rect.x() + rect.width():
                x = rect.x()
                y += line_height + spacing
                line_height = 0
            if apply:
                item.setGeometry(QRect(QPoint(x, y), hint))
            x += hint.width() + spacing
            line_height = max(line_height, hint.height())
        return y + line_height - rect.y()


class MasonryGrid(QWidget):
    """Lays tile widgets out in masonry columns and relayouts on resize."""

    def __init__(self, parent=None, gutter: int = DEFAULT_GUTTER, strategy: str = STRATEGY_COMPAT):
        super().__init__(parent)
        self.layout_model = MasonryLayout(gutter=gutter, strategy=strategy)
        self._columns_layout = ColumnFlowLayout(self, spacing=self.layout_model.gutter)
        self._column_widgets: dict[int, QWidget] = {}
        self._animations = []
        self.setMinimumHeight(100)

        # Coalesce bursts of resize events into one relayout.
        self._relayout_timer = QTimer(self)
        self._relayout_timer.setSingleShot(True)
        self._relayout_timer.setInterval(50)
        self._relayout_timer.timeout.connect(self._apply_width)

    def set_tiles(self, tiles: list[tuple[LayoutItem, QWidget]]):
        """
        Replace the tiles; each LayoutItem carries its widget as payload.

        Widgets that are no longer part of the grid are hidden and handed back
        to the caller, who owns their lifetime.
        """
        for old_item in self.layout_model.items:
            widget = old_item.payload
            if widget is not None and all(widget is not new_widget for _, new_widget in tiles):
                widget.hide()
                widget.setParent(None)
        items = []
        for item, widget in tiles:
            item.payload = widget
            items.append(item)
        self.layout_model.set_items(items)
        self._rebuild()

    def set_gutter(self, gutter: int):
        before = self.layout_model.columns
        self.layout_model.set_gutter(gutter)
        if self.layout_model.columns is not before:
            self._columns_layout.setSpacing(self.layout_model.gutter)
            self._rebuild()

    def set_strategy(self, strategy: str):
        before = self.layout_model.columns
        self.layout_model.set_strategy(strategy)
        if self.layout_model.columns is not before:
            self._rebuild()

    def column_widgets(self) -> list[QWidget]:
        return [self._column_widgets[key] for key in sorted(self._column_widgets)]

    def available_width(self) -> int:
        """Width the columns may use, bounded by the enclosing scroll viewport."""
        width = self.width()
        ancestor = self.parentWidget()
        while ancestor is not None:
            if isinstance(ancestor, QAbstractScrollArea):
                viewport = ancestor.viewport()
                offset = max(0, self.mapTo(viewport, QPoint(0, 0)).x())
                return max(0, min(width, viewport.width() - offset))
            ancestor = ancestor.parentWidget()
        return width

    def resizeEvent(self, event):
        super().resizeEvent(event)
        self._relayout_timer.start()

    def _apply_width(self):
        before = self.layout_model.columns
        width = self.available_width()
        self.layout_model.set_container_width(width)
        if self.layout_model.columns is not before:
            log_flow("MASONRY", f"Relayout width={width} columns={len(self.layout_model.columns)}",
                     throttle_key="masonry_grid_relayout", every_s=0.25)
            self._rebuild()

    def _rebuild(self):
        columns = self.layout_model.columns
        for key in self.layout_model.removed_column_keys:
            column_widget = self._column_widgets.pop(key, None)
            if column_widget is not None:
                self._detach_tiles(column_widget)
                column_widget.setParent(None)
                column_widget.deleteLater()

        for key, column in enumerate(columns):
            column_widget = self._column_widgets.get(key)
            if column_widget is None:
                column_widget = QWidget(self)
                column_layout = QVBoxLayout(column_widget)
                column_layout.setContentsMargins(0, 0, 0, 0)
                column_layout.setSpacing(self.layout_model.gutter)
                column_layout.setAlignment(Qt.AlignmentFlag.AlignTop)
                self._column_widgets[key] = column_widget
                self._columns_layout.insertWidget(key, column_widget)
            else:
                self._detach_tiles(column_widget)
            column_layout = column_widget.layout()
            column_layout.setSpacing(self.layout_model.gutter)
            for item in column:
                if item.payload is not None:
                    column_layout.addWidget(item.payload)
                    item.payload.show()

        for key in self.layout_model.added_column_keys:
            self._animate_column_in(key)

    @staticmethod
    def _detach_tiles(column_widget: QWidget):
        column_layout = column_widget.layout()
        while column_layout.count():
            column_layout.takeAt(0)

    def _animate_column_in(self, key: int):
        column_widget = self._column_widgets.get(key)
        if column_widget is None or not self.isVisible():
            return
        effect = QGraphicsOpacityEffect(column_widget)
        effect.setOpacity(0.0)
        column_widget.setGraphicsEffect(effect)

        fade = QPropertyAnimation(effect, b'opacity', column_widget)
        fade.setDuration(COLUMN_FADE_MS)
        fade.setStartValue(0.0)
        fade.setEndValue(1.0)
        slide = QPropertyAnimation(column_widget, b'pos', column_widget)
        slide.setDuration(COLUMN_FADE_MS)
        slide.setStartValue(column_widget.pos() + QPoint(0, COLUMN_SLIDE_PX))
        slide.setEndValue(column_widget.pos())
        slide.setEasingCurve(QEasingCurve.Type.OutCubic)

        together = QParallelAnimationGroup(column_widget)
        together.addAnimation(fade)
        together.addAnimation(slide)
        sequence = QSequentialAnimationGroup(column_widget)
        sequence.addPause(key * COLUMN_STAGGER_MS)
        sequence.addAnimation(together)

        def _finished():
            column_widget.setGraphicsEffect(None)
            if sequence in self._animations:
                self._animations.remove(sequence)

        sequence.finished.connect(_finished)
        self._animations.append(sequence)
        sequence.start()
