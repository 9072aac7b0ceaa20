"""Maintenance window: HPIA driver/BIOS run and Windows Update."""
from __future__ import annotations

import sys
from typing import Callable

from PySide6.QtCore import QThreadPool
from PySide6.QtGui import QColor, QPalette
from PySide6.QtWidgets import (
    QApplication,
    QCheckBox,
    QHBoxLayout,
    QLabel,
    QMessageBox,
    QPlainTextEdit,
    QPushButton,
    QStyleFactory,
    QVBoxLayout,
    QWidget,
)

from services.drivers import DriverUpdateResult, DriverUpdateWorkflow
from services.privilege import ElevationToken, relaunch_as_admin
from services.windows_update import WindowsUpdateResult, WindowsUpdateWorkflow
from ui.workers import ServiceWorker

LogCallback = Callable[[str], None]


def _run_driver_update(token: ElevationToken, bios_only: bool, *, log_callback: LogCallback) -> DriverUpdateResult:
    return DriverUpdateWorkflow(log_callback=log_callback).run(token, bios_only=bios_only)


def _run_windows_update(token: ElevationToken, *, log_callback: LogCallback) -> WindowsUpdateResult:
    # Reboot is confirmed on the GUI thread once the install has finished.
    return WindowsUpdateWorkflow(log_callback=log_callback).run(token, lambda: False)


class MaintenanceWindow(QWidget):
    def __init__(self, token: ElevationToken, *, thread_pool: QThreadPool | None = None) -> None:
        super().__init__()
        self._token = token
        self._thread_pool = thread_pool or QThreadPool.globalInstance()
        self._workers: set[ServiceWorker] = set()
        self._busy = False
        self.setWindowTitle("HP Maintenance")
        self.setMinimumSize(720, 480)
        self._build_ui()
        if not token.granted:
            self._log("[WARN] Not running as administrator. Updates are disabled until the tool is restarted elevated.")

    def _build_ui(self) -> None:
        layout = QVBoxLayout(self)

        row = QHBoxLayout()
        self._btn_drivers = QPushButton("Update Drivers")
        self._chk_bios = QCheckBox("BIOS only")
        self._btn_windows = QPushButton("Windows Update")
        for btn in (self._btn_drivers, self._btn_windows):
            btn.setMinimumWidth(150)
        row.addWidget(self._btn_drivers)
        row.addWidget(self._chk_bios)
        row.addWidget(self._btn_windows)
        row.addStretch()
        if not self._token.granted:
            self._btn_elevate = QPushButton("Restart as Administrator")
            self._btn_elevate.clicked.connect(self._relaunch)
            row.addWidget(self._btn_elevate)
        layout.addLayout(row)

        layout.addWidget(QLabel("Log"))
        self._log_view = QPlainTextEdit()
        self._log_view.setReadOnly(True)
        layout.addWidget(self._log_view)

        self._btn_drivers.clicked.connect(self._start_drivers)
        self._btn_windows.clicked.connect(self._start_windows_update)
        self._set_buttons_enabled(self._token.granted)

    def _log(self, message: str) -> None:
        self._log_view.appendPlainText(message)

    def _start(self, worker: ServiceWorker, on_finished: Callable[[object], None]) -> None:
        self._busy = True
        self._set_buttons_enabled(False)
        self._workers.add(worker)
        worker.signals.message.connect(self._log)
        worker.signals.finished.connect(on_finished)
        worker.signals.error.connect(self._handle_error)
        worker.signals.finished.connect(lambda *_: self._workers.discard(worker))
        worker.signals.error.connect(lambda *_: self._workers.discard(worker))
        self._thread_pool.start(worker)

    def _start_drivers(self) -> None:
        if self._busy:
            QMessageBox.information(self, "In Progress", "Wait for the current operation to finish.")
            return
        bios_only = self._chk_bios.isChecked()
        self._log(f"Starting HPIA {'BIOS' if bios_only else 'driver and BIOS'} update...")
        worker = ServiceWorker(_run_driver_update, self._token, bios_only, with_messages=True)
        self._start(worker, self._handle_driver_result)

    def _start_windows_update(self) -> None:
        if self._busy:
            QMessageBox.information(self, "In Progress", "Wait for the current operation to finish.")
            return
        self._log("Starting Windows Update...")
        worker = ServiceWorker(_run_windows_update, self._token, with_messages=True)
        self._start(worker, self._handle_windows_result)

    def _handle_driver_result(self, result: object) -> None:
        self._finish()
        if not isinstance(result, DriverUpdateResult):
            return
        if result.installed:
            self._log("[OK] Driver installation completed.")
        elif result.skipped_reason:
            self._log(f"[OK] {result.skipped_reason}")
        if result.reports is not None:
            self._log(f"Reports moved: {len(result.reports.moved)}")

    def _handle_windows_result(self, result: object) -> None:
        self._finish()
        if not isinstance(result, WindowsUpdateResult) or not result.reboot_required:
            return
        answer = QMessageBox.question(
            self,
            "Reboot Required",
            "Windows updates were installed and a reboot is required. Restart now?",
        )
        if answer == QMessageBox.StandardButton.Yes:
            try:
                WindowsUpdateWorkflow(log_callback=self._log).reboot()
            except RuntimeError as exc:
                self._log(f"[ERROR] {exc}")
        else:
            self._log("Reboot postponed.")

    def _handle_error(self, message: str) -> None:
        self._finish()
        self._log(f"[ERROR] {message}")

    def _finish(self) -> None:
        self._busy = False
        self._set_buttons_enabled(True)

    def _set_buttons_enabled(self, enabled: bool) -> None:
        enabled = enabled and self._token.granted
        for button in (self._btn_drivers, self._btn_windows):
            button.setEnabled(enabled)
        self._chk_bios.setEnabled(enabled)

    def _relaunch(self) -> None:
        if relaunch_as_admin():
            QApplication.quit()
        else:
            self._log("[WARN] Elevation was cancelled.")


def _apply_dark_palette(app: QApplication) -> None:
    app.setStyle(QStyleFactory.create("Fusion"))
    text = QColor(230, 230, 230)
    surface = QColor(32, 32, 32)
    palette = QPalette()
    palette.setColor(QPalette.Window, QColor("#1e1e1e"))
    palette.setColor(QPalette.WindowText, text)
    palette.setColor(QPalette.Base, QColor(18, 18, 18))
    palette.setColor(QPalette.Text, text)
    palette.setColor(QPalette.Button, surface)
    palette.setColor(QPalette.ButtonText, text)
    palette.setColor(QPalette.Highlight, QColor("#007acc"))
    palette.setColor(QPalette.Disabled, QPalette.ButtonText, QColor(130, 130, 130))
    app.setPalette(palette)


def launch(*, is_elevated: bool) -> int:
    app = QApplication.instance() or QApplication(sys.argv)
    _apply_dark_palette(app)
    window = MaintenanceWindow(ElevationToken(granted=is_elevated))
    window.show()
    return app.exec()
