"""TrayIcon — system tray icon showing the input-method state and errors."""

from __future__ import annotations

from PyQt5.QtCore import Qt, pyqtSignal
from PyQt5.QtGui import QColor, QIcon, QPainter, QPixmap
from PyQt5.QtWidgets import QApplication, QSystemTrayIcon

from imorch.core.events import Event, EventType
from imorch.core.states import Intent
from imorch.ui.status import IStatusSink

# Label shown on the icon after each intent
INTENT_LABELS: dict[Intent, str] = {
    Intent.INSERT_ENTER: "I",
    Intent.INSERT_LEAVE: "N",
    Intent.MATH_ENTER: "M",
    Intent.MATH_LEAVE: "I",
}

COLOR_OK = QColor(70, 130, 180)
COLOR_ERROR = QColor(190, 60, 60)


def create_status_icon(label: str = "", error: bool = False, size: int = 64) -> QIcon:
    """Round icon with a one-letter state label."""
    pixmap = QPixmap(size, size)
    pixmap.fill(QColor(0, 0, 0, 0))

    painter = QPainter(pixmap)
    painter.setRenderHint(QPainter.Antialiasing)

    painter.setBrush(COLOR_ERROR if error else COLOR_OK)
    painter.setPen(Qt.NoPen)
    painter.drawEllipse(2, 2, size - 4, size - 4)

    if label:
        painter.setPen(QColor(255, 255, 255))
        font = painter.font()
        font.setPixelSize(size // 2)
        font.setBold(True)
        painter.setFont(font)
        painter.drawText(pixmap.rect(), Qt.AlignCenter, label[:1].upper())

    painter.end()
    return QIcon(pixmap)


class TrayIcon(QSystemTrayIcon):
    """Tray icon updated from any thread through Qt signals.

    Intents are published on the editor-event thread and status messages
    come from the dispatcher worker, so neither touches widgets directly.
    """

    status_changed = pyqtSignal(str)
    label_changed = pyqtSignal(str)

    def __init__(self, event_bus=None, app: QApplication | None = None):
        super().__init__(create_status_icon(), None)
        self.event_bus = event_bus
        self._app = app
        self._label = ""
        self._status = ""

        self.status_changed.connect(self._apply_status)
        self.label_changed.connect(self._apply_label)

        if self.event_bus is not None:
            self.event_bus.subscribe(EventType.INTENT, self._on_intent)

        self.setToolTip("imorch")

    # -- public API --------------------------------------------------------

    def show(self) -> None:
        self.setVisible(True)

    def hide(self) -> None:
        self.setVisible(False)

    def cleanup(self) -> None:
        """Unsubscribe from EventBus to prevent stale callbacks."""
        if self.event_bus is not None:
            self.event_bus.unsubscribe(EventType.INTENT, self._on_intent)

    # -- GUI thread slots --------------------------------------------------

    def _apply_label(self, label: str) -> None:
        self._label = label
        # A successful transition clears a previous error
        self._status = ""
        self._refresh()

    def _apply_status(self, message: str) -> None:
        self._status = message
        self._refresh()

    def _refresh(self) -> None:
        tooltip = "imorch"
        if self._label:
            tooltip += f" — {self._label}"
        if self._status:
            tooltip += f" ({self._status})"
        self.setToolTip(tooltip)
        self.setIcon(create_status_icon(self._label, error=bool(self._status)))

    # -- EventBus handlers -------------------------------------------------

    def _on_intent(self, event: Event) -> None:
        intent = getattr(event.data, "intent", None)
        if intent in INTENT_LABELS:
            self.label_changed.emit(INTENT_LABELS[intent])


class TrayStatusSink(IStatusSink):
    """IStatusSink that forwards messages to a TrayIcon."""

    def __init__(self, tray: TrayIcon):
        self.tray = tray

    def set_status(self, message: str) -> None:
        self.tray.status_changed.emit(message)
