"""IMEOrchestratorApp — wires editor notifications to IME switch commands."""

from __future__ import annotations

import logging
import signal
import sys
import threading
import time

import imorch.log  # registers TRACE level and logger.trace()
from imorch.config import ConfigManager, PlatformCommands, detect_platform
from imorch.core.classifier import TransitionClassifier
from imorch.core.dispatcher import CommandDispatcher
from imorch.core.event_bus import EventBus
from imorch.core.event_manager import EventManager
from imorch.core.events import Event, EventType, IntentEventData
from imorch.core.states import EditorSnapshot, Intent, Mode
from imorch.editor.base import IEditorAdapter, Subscription
from imorch.platform.subprocess_impl import SubprocessSystemAdapter
from imorch.ui.status import IStatusSink, LogStatusSink, NullStatusSink

logger = logging.getLogger(__name__)


class IMEOrchestratorApp:
    """Single-process application: editor adapter → classifier → dispatcher.

    Modes:
        headless=True  — no GUI; status (if enabled) goes to the log
        headless=False — tray icon shows status when ``status_bar`` is on

    ``_init_platform()`` is separated from ``__init__`` so that tests
    can inject mocks without spawning real processes.
    """

    def __init__(
        self,
        headless: bool = False,
        debug: bool = False,
        config_path: str | None = None,
        platform: str | None = None,
    ):
        self.headless = headless
        self.debug = debug
        self._running = False

        # Configuration
        self.config = ConfigManager(config_path=config_path, debug=debug)
        self.platform = platform or detect_platform()
        self.commands: PlatformCommands = self.config.platform_commands(self.platform)

        # Core components
        self.event_bus = EventBus()
        self.event_manager = EventManager(self.event_bus, debug=debug)
        self.classifier = TransitionClassifier(debug=debug)

        # Platform components, created by _init_platform()
        self.system = None
        self.status: IStatusSink | None = None
        self.dispatcher: CommandDispatcher | None = None

        # Current editor attachment; at most one at a time
        self.editor: IEditorAdapter | None = None
        self._subscriptions: list[Subscription] = []

    # ------------------------------------------------------------------
    # Platform initialisation
    # ------------------------------------------------------------------

    def _init_platform(self, status: IStatusSink | None = None) -> None:
        if self.system is None:
            self.system = SubprocessSystemAdapter(path_prefix=self.commands.path_prefix, debug=self.debug)

        if status is not None:
            self.status = status
        elif self.status is None:
            self.status = LogStatusSink() if self.config.get('status_bar') else NullStatusSink()

        self.dispatcher = self._build_dispatcher()

    def _build_dispatcher(self) -> CommandDispatcher:
        return CommandDispatcher(
            self.system,
            async_exec=bool(self.config.get('async_exec', True)),
            dedup_window=float(self.config.get('dedup_window', 0.3)),
            status=self.status,
            debug=self.debug,
        )

    # ------------------------------------------------------------------
    # Event bus wiring
    # ------------------------------------------------------------------

    def _wire_event_bus(self) -> None:
        """Subscribe event handlers to the EventBus."""
        self.event_bus.subscribe(EventType.MODE_CHANGED, self._on_mode_changed)
        self.event_bus.subscribe(EventType.DOCUMENT_CHANGED, self._on_document_changed)
        self.event_bus.subscribe(EventType.FOCUS_CHANGED, self._on_focus_changed)
        self.event_bus.subscribe(EventType.CONFIG_CHANGED, self._on_config_changed)

    # ------------------------------------------------------------------
    # Editor attachment
    # ------------------------------------------------------------------

    def attach_editor(self, editor: IEditorAdapter) -> None:
        """Subscribe to *editor*, dropping any previous subscription first."""
        self.detach_editor()
        self.editor = editor
        self._subscriptions = [
            editor.subscribe_to_mode_changes(self.event_manager.handle_mode_change),
            editor.subscribe_to_document_changes(self.event_manager.handle_document_change),
            editor.subscribe_to_focus_changes(self.event_manager.handle_focus_change),
        ]
        logger.debug("Editor attached: %s", type(editor).__name__)

    def detach_editor(self) -> None:
        for sub in self._subscriptions:
            sub.unsubscribe()
        self._subscriptions = []
        self.editor = None

    def _snapshot(self) -> EditorSnapshot | None:
        if self.editor is None:
            return None
        try:
            return self.editor.get_snapshot()
        except Exception as exc:
            logger.debug("get_snapshot failed: %s", exc)
            return None

    # ------------------------------------------------------------------
    # EventBus handlers
    # ------------------------------------------------------------------

    def _on_mode_changed(self, event: Event) -> None:
        mode: Mode = event.data.mode
        snapshot = self._snapshot() if mode is Mode.INSERT else None
        self._emit(self.classifier.on_mode_change(mode, snapshot))

    def _on_document_changed(self, event: Event) -> None:
        self._emit(self.classifier.on_caret_or_doc_changed(event.data.snapshot))

    def _on_focus_changed(self, event: Event) -> None:
        # Another buffer took focus: re-attach so exactly one set of
        # listeners stays live.
        if self.editor is not None:
            self.attach_editor(self.editor)

    def _on_config_changed(self, event: Event) -> None:
        self.commands = self.config.platform_commands(self.platform)
        if isinstance(self.system, SubprocessSystemAdapter):
            self.system.set_path_prefix(self.commands.path_prefix)
        if self.dispatcher is not None:
            self.dispatcher.async_exec = bool(self.config.get('async_exec', True))
            self.dispatcher.dedup_window = float(self.config.get('dedup_window', 0.3))
        logger.info("Configuration applied (platform=%s)", self.platform)

    def _emit(self, intent: Intent | None) -> None:
        if intent is None:
            return
        command = self.commands.for_intent(intent)
        logger.debug("Intent %s → %r", intent.name, command)
        self.event_bus.publish(Event(EventType.INTENT, IntentEventData(intent, command), time.time()))
        if self.dispatcher is not None:
            self.dispatcher.dispatch(command)

    def reload_config(self) -> None:
        if self.config.reload():
            self.event_bus.publish(Event(EventType.CONFIG_CHANGED, None, time.time()))

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def run(self, editor) -> None:
        """Blocking main loop driven by a StreamEditorAdapter."""
        if not self.headless and self.config.get('status_bar'):
            self._run_with_gui(editor)
            return

        self._init_platform()
        self._wire_event_bus()
        self.attach_editor(editor)
        self._install_signal_handlers()
        self._running = True
        logger.info("imorch started (platform=%s, headless=%s)", self.platform, self.headless)
        try:
            editor.run()
        finally:
            self.stop()

    def _install_signal_handlers(self) -> None:
        if threading.current_thread() is not threading.main_thread():
            return

        def _reload_handler(signum, frame):
            self.reload_config()
            logger.debug("Config reloaded via SIGHUP")

        if hasattr(signal, 'SIGHUP'):
            signal.signal(signal.SIGHUP, _reload_handler)

    def _run_with_gui(self, editor) -> None:
        """Read the editor stream in a background thread + Qt loop in main thread."""
        from PyQt5.QtWidgets import QApplication
        from imorch.ui.tray_icon import TrayIcon, TrayStatusSink

        qt_app = QApplication.instance() or QApplication(sys.argv)
        tray = TrayIcon(event_bus=self.event_bus, app=qt_app)

        self._init_platform(status=TrayStatusSink(tray))
        self._wire_event_bus()
        self.attach_editor(editor)
        self._install_signal_handlers()
        self._running = True

        def _stream_thread():
            try:
                editor.run()
            except Exception as exc:
                logger.error("Editor stream thread error: %s", exc)
            finally:
                qt_app.quit()

        tray.show()
        t = threading.Thread(target=_stream_thread, daemon=True, name="editor-loop")
        t.start()
        logger.info("imorch started (platform=%s, tray)", self.platform)

        try:
            qt_app.exec_()
        finally:
            tray.cleanup()
            self.stop()
            t.join(timeout=2.0)

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    def stop(self) -> None:
        """Graceful shutdown — safe to call multiple times."""
        self._running = False
        self.detach_editor()
        if self.dispatcher is not None:
            self.dispatcher.close()
            # Let a running command finish; it is never killed
            self.dispatcher.wait_idle(timeout=2.0)
