#!/usr/bin/env python3
"""
Pisi Store - Qt desktop shell.

The store services run on an asyncio loop in a worker thread. The window
shows the rendered page in a QTextBrowser and turns clicked `action:` links
back into controller actions. Everything the services report (page HTML,
busy state, alerts) crosses into the GUI thread through Qt signals.
"""
from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import sys
from typing import Any, Callable, Coroutine, Optional

from PyQt6.QtCore import QThread, QUrl, pyqtSignal
from PyQt6.QtGui import QIcon, QTextDocument
from PyQt6.QtWidgets import (
    QApplication, QLineEdit, QMainWindow, QMessageBox, QStatusBar,
    QTextBrowser, QVBoxLayout, QWidget,
)

from common.exceptions import StoreError
from common.logging_config import level_from_env, setup_logging

from ..actions import parse_action_url
from ..app import StoreApp, build_app
from ..config import StoreConfig
from ..icons import FALLBACK_ICON, ICON_SCHEME

logger = logging.getLogger(__name__)

ICON_SIZE = 48

DARK_STYLE = """
    QMainWindow, QWidget {
        background-color: #1e1e1e;
        color: #e0e0e0;
    }
    QTextBrowser {
        border: none;
    }
    QLineEdit {
        background-color: #2d2d2d;
        border: 1px solid #404040;
        border-radius: 4px;
        padding: 8px;
        color: white;
    }
    QLineEdit:focus {
        border-color: #0078d4;
    }
    QStatusBar {
        background-color: #2d2d2d;
        color: #888888;
    }
"""

LIGHT_STYLE = """
    QLineEdit {
        border: 1px solid #c0c0c0;
        border-radius: 4px;
        padding: 8px;
    }
    QLineEdit:focus {
        border-color: #0078d4;
    }
"""


class LoopThread(QThread):
    """Runs an asyncio event loop until stopped."""

    def __init__(self):
        super().__init__()
        self.loop = asyncio.new_event_loop()

    def run(self):
        asyncio.set_event_loop(self.loop)
        self.loop.run_forever()
        self.loop.close()

    def submit(self, coro: Coroutine[Any, Any, Any]) -> concurrent.futures.Future:
        """Schedule a coroutine on the loop from any thread."""
        return asyncio.run_coroutine_threadsafe(coro, self.loop)

    def call_soon(self, callback: Callable[..., Any], *args) -> None:
        self.loop.call_soon_threadsafe(callback, *args)

    def stop(self) -> None:
        if self.loop.is_running():
            self.loop.call_soon_threadsafe(self.loop.stop)
        self.wait()


class CatalogBrowser(QTextBrowser):
    """Page view that resolves `icon:` resources from the icon theme."""

    def __init__(self):
        super().__init__()
        self.setOpenLinks(False)
        self.setOpenExternalLinks(False)

    def loadResource(self, type: int, name: QUrl) -> Any:
        if type == QTextDocument.ResourceType.ImageResource.value and name.scheme() == ICON_SCHEME:
            icon = QIcon.fromTheme(name.path(), QIcon.fromTheme(FALLBACK_ICON))
            return icon.pixmap(ICON_SIZE, ICON_SIZE)
        return super().loadResource(type, name)

    def show_page(self, html: str):
        # setHtml resets the scroll position
        scroll = self.verticalScrollBar().value()
        self.setHtml(html)
        self.verticalScrollBar().setValue(scroll)


def _log_failure(future: concurrent.futures.Future):
    if not future.cancelled() and future.exception() is not None:
        logger.error(f"Action failed: {future.exception()}")


class StoreWindow(QMainWindow):
    """Main Pisi Store window."""

    page_changed = pyqtSignal(str)
    status_changed = pyqtSignal(str)
    alert_raised = pyqtSignal(str)
    theme_changed = pyqtSignal(bool)
    retranslated = pyqtSignal(str, str)

    def __init__(self, config: Optional[StoreConfig] = None):
        super().__init__()
        self.setMinimumSize(1000, 700)

        self.loop_thread = LoopThread()
        self.app: StoreApp = build_app(config, alert=self.alert_raised.emit)
        self.app.pipeline.add_sink(self.page_changed.emit)
        # Mock suffix in the status bar follows the bridge
        self.app.bridge.on_transition(
            lambda old, new: self.status_changed.emit(self._status_text(self.app.controller.busy))
        )

        self._build_ui()

        self.page_changed.connect(self.browser.show_page)
        self.status_changed.connect(self.status.showMessage)
        self.alert_raised.connect(self._show_alert)
        self.theme_changed.connect(self._apply_theme)
        self.retranslated.connect(self._apply_labels)

        self._apply_theme(self.app.theme.dark_mode)
        self._apply_labels("Pisi Store", "")

    def _build_ui(self):
        central = QWidget()
        self.setCentralWidget(central)

        layout = QVBoxLayout(central)
        layout.setContentsMargins(8, 8, 8, 0)
        layout.setSpacing(8)

        self.search_box = QLineEdit()
        self.search_box.setClearButtonEnabled(True)
        self.search_box.textChanged.connect(self._on_search_changed)
        layout.addWidget(self.search_box)

        self.browser = CatalogBrowser()
        self.browser.anchorClicked.connect(self._on_link_clicked)
        layout.addWidget(self.browser)

        self.status = QStatusBar()
        self.setStatusBar(self.status)

    # -- Startup --

    def start(self):
        """Start the event loop and run the startup sequence on it."""
        self.loop_thread.start()
        future = self.loop_thread.submit(self.app.start(bind_listeners=self._bind_listeners))
        future.add_done_callback(self._on_started)

    def _bind_listeners(self):
        # Runs on the loop thread; every listener only emits a signal
        self.app.controller.on_busy(lambda busy: self.status_changed.emit(self._status_text(busy)))
        self.app.theme.subscribe(self.theme_changed.emit)
        self.app.i18n.subscribe(lambda lang: self._emit_labels())
        self._emit_labels()
        self.status_changed.emit(self._status_text(self.app.controller.busy))

    def _on_started(self, future: concurrent.futures.Future):
        try:
            loaded = future.result()
        except StoreError as e:
            logger.error(f"Startup failed: {e}")
            self.alert_raised.emit(e.message)
            return
        except Exception as e:
            logger.exception(f"Startup failed: {e}")
            self.alert_raised.emit(str(e))
            return
        if not loaded:
            logger.warning("Initial catalog load failed")

    def _status_text(self, busy: bool) -> str:
        t = self.app.i18n.t
        text = t("status.busy") if busy else t("status.ready")
        if self.app.bridge.is_mock:
            text = f"{text} ({t('status.mock')})"
        return text

    def _emit_labels(self):
        t = self.app.i18n.t
        self.retranslated.emit(t("app.title"), t("search.placeholder"))

    # -- GUI thread slots --

    def _apply_theme(self, dark: bool):
        self.setStyleSheet(DARK_STYLE if dark else LIGHT_STYLE)

    def _apply_labels(self, title: str, placeholder: str):
        self.setWindowTitle(title)
        self.search_box.setPlaceholderText(placeholder)

    def _show_alert(self, message: str):
        QMessageBox.critical(self, self.app.i18n.t("alert.title"), message)

    def _on_search_changed(self, text: str):
        self.loop_thread.call_soon(self.app.controller.search, text)

    def _on_link_clicked(self, url: QUrl):
        parsed = parse_action_url(url.toEncoded().data().decode("ascii"))
        if parsed is None:
            logger.debug(f"Ignoring link {url.toString()}")
            return
        action, argument = parsed
        future = self.loop_thread.submit(self.app.controller.dispatch(action, argument))
        future.add_done_callback(_log_failure)

    def closeEvent(self, event):
        self.loop_thread.stop()
        super().closeEvent(event)


def main(argv=None):
    """Entry point for the Pisi Store desktop application."""
    config = StoreConfig()
    setup_logging(level=level_from_env(), json_logs=config.json_logs, log_dir=config.log_dir)

    app = QApplication(sys.argv if argv is None else argv)
    app.setApplicationName("Pisi Store")
    app.setDesktopFileName("pisi-store")

    window = StoreWindow(config)
    window.show()
    window.start()

    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
