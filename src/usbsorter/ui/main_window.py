"""Application main window and supporting models."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from PySide6 import QtCore, QtGui, QtWidgets

from ..services.coordinator import MonitorCoordinator
from ..services.engine import ApplyReport
from ..services.model import OrderModel
from ..services.monitor import FilesystemMonitor
from ..services.preconditions import Rejected
from ..services.session import SessionState, SortSession
from ..services.settings import SettingsManager
from ..services.workers import ApplyTask, start_task

logger = logging.getLogger(__name__)

ROW_MIME_TYPE = "application/x-usbsorter-row"
NODE_ROLE = QtCore.Qt.ItemDataRole.UserRole + 1


class FolderTableModel(QtCore.QAbstractTableModel):
    """Children of one folder in their desired order.

    Drags and header sorts are not applied here; they are reported through
    signals so the session can update the order model and its moved flags.
    """

    headers = ["Folder", "Pending"]

    rowMoveRequested = QtCore.Signal(int, int)  # from row, to row
    sortRequested = QtCore.Signal(int, bool)  # column, descending

    def __init__(self, parent: QtCore.QObject | None = None) -> None:
        super().__init__(parent)
        self._model: OrderModel | None = None
        self._parent_id: int | None = None
        self._rows: List[int] = []

    @property
    def parent_id(self) -> int | None:
        return self._parent_id

    def show_level(self, model: OrderModel | None, parent_id: int | None) -> None:
        self.beginResetModel()
        self._model = model
        self._parent_id = parent_id
        self._rows = model.children(parent_id) if model is not None and parent_id is not None else []
        self.endResetModel()

    def refresh(self) -> None:
        self.show_level(self._model, self._parent_id)

    def rowCount(self, parent: QtCore.QModelIndex | QtCore.QPersistentModelIndex = QtCore.QModelIndex()) -> int:  # type: ignore[override]
        return 0 if parent.isValid() else len(self._rows)

    def columnCount(self, parent: QtCore.QModelIndex | QtCore.QPersistentModelIndex = QtCore.QModelIndex()) -> int:  # type: ignore[override]
        return len(self.headers)

    def data(self, index: QtCore.QModelIndex, role: int = QtCore.Qt.ItemDataRole.DisplayRole):  # type: ignore[override]
        if not index.isValid() or self._model is None:
            return None
        node = self._model.node(self._rows[index.row()])
        if role == QtCore.Qt.ItemDataRole.DisplayRole:
            if index.column() == 0:
                return node.name
            if index.column() == 1:
                return "Moved" if node.moved else ""
        if role == QtCore.Qt.ItemDataRole.ToolTipRole and index.column() == 0:
            return str(self._model.path_of(self._rows[index.row()]))
        if role == QtCore.Qt.ItemDataRole.DecorationRole and index.column() == 0:
            return QtGui.QIcon.fromTheme("folder")
        return None

    def headerData(self, section: int, orientation: QtCore.Qt.Orientation, role: int = QtCore.Qt.ItemDataRole.DisplayRole):  # type: ignore[override]
        if role == QtCore.Qt.ItemDataRole.DisplayRole and orientation == QtCore.Qt.Orientation.Horizontal:
            return self.headers[section]
        return None

    def flags(self, index: QtCore.QModelIndex) -> QtCore.Qt.ItemFlag:  # type: ignore[override]
        default = super().flags(index) | QtCore.Qt.ItemFlag.ItemIsDropEnabled
        if index.isValid():
            return default | QtCore.Qt.ItemFlag.ItemIsDragEnabled
        return default

    def supportedDropActions(self) -> QtCore.Qt.DropAction:  # type: ignore[override]
        return QtCore.Qt.DropAction.MoveAction

    def mimeTypes(self) -> List[str]:  # type: ignore[override]
        return [ROW_MIME_TYPE]

    def mimeData(self, indexes) -> QtCore.QMimeData:  # type: ignore[override]
        mime = QtCore.QMimeData()
        rows = sorted({index.row() for index in indexes if index.isValid()})
        if rows:
            mime.setData(ROW_MIME_TYPE, QtCore.QByteArray(str(rows[0]).encode("ascii")))
        return mime

    def dropMimeData(self, data, action, row, column, parent) -> bool:  # type: ignore[override]
        if action != QtCore.Qt.DropAction.MoveAction or not data.hasFormat(ROW_MIME_TYPE):
            return False
        source = int(bytes(data.data(ROW_MIME_TYPE)).decode("ascii"))
        if row < 0:
            row = parent.row() if parent.isValid() else len(self._rows)
        target = row - 1 if source < row else row
        target = max(0, min(target, len(self._rows) - 1))
        if target != source:
            self.rowMoveRequested.emit(source, target)
        # The view must not delete the source row; the session owns the order.
        return False

    def sort(self, column: int, order: QtCore.Qt.SortOrder = QtCore.Qt.SortOrder.AscendingOrder) -> None:  # type: ignore[override]
        if column == 0:
            self.sortRequested.emit(column, order == QtCore.Qt.SortOrder.DescendingOrder)


class LogEmitter(QtCore.QObject):
    message = QtCore.Signal(str)


class QtLogHandler(logging.Handler):
    """Forward log records to the log pane, from any thread."""

    def __init__(self) -> None:
        super().__init__(level=logging.INFO)
        self.emitter = LogEmitter()
        self.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.emitter.message.emit(self.format(record))
        except Exception:  # pragma: no cover - logging must never raise
            self.handleError(record)


class MainWindow(QtWidgets.QMainWindow):
    """Folder tree, editable child order, apply button and log."""

    def __init__(self) -> None:
        super().__init__()
        self.setWindowTitle("Stereo USB Sorter")
        self.resize(900, 650)

        self.settings_manager = SettingsManager()
        settings = self.settings_manager.settings
        self.coordinator = MonitorCoordinator(FilesystemMonitor(), preference=settings.monitor_filesystem)
        self.session = SortSession(
            self.coordinator,
            sort_folders=settings.sort_folders,
            flush_delay=settings.flush_delay,
        )
        self.table_model = FolderTableModel(self)
        self._apply_thread: QtCore.QThread | None = None
        self._apply_task: ApplyTask | None = None
        self._log_handler = QtLogHandler()

        self._setup_ui()
        self._apply_settings()
        self._apply_style()
        self._connect_signals()
        logging.getLogger("usbsorter").addHandler(self._log_handler)

    def _setup_ui(self) -> None:
        central_widget = QtWidgets.QWidget(self)
        main_layout = QtWidgets.QVBoxLayout(central_widget)

        splitter = QtWidgets.QSplitter(QtCore.Qt.Orientation.Horizontal)
        self.tree_widget = QtWidgets.QTreeWidget()
        self.tree_widget.setHeaderLabels(["Folders"])
        splitter.addWidget(self.tree_widget)

        self.table_view = QtWidgets.QTableView()
        self.table_view.setModel(self.table_model)
        self.table_view.setSelectionBehavior(QtWidgets.QAbstractItemView.SelectionBehavior.SelectRows)
        self.table_view.setSelectionMode(QtWidgets.QAbstractItemView.SelectionMode.SingleSelection)
        self.table_view.setDragDropMode(QtWidgets.QAbstractItemView.DragDropMode.DragDrop)
        self.table_view.setDefaultDropAction(QtCore.Qt.DropAction.MoveAction)
        self.table_view.setDragDropOverwriteMode(False)
        self.table_view.setDropIndicatorShown(True)
        self.table_view.setSortingEnabled(False)
        self.table_view.horizontalHeader().setSectionsClickable(True)
        self.table_view.horizontalHeader().setStretchLastSection(True)
        self.table_view.verticalHeader().setVisible(False)
        splitter.addWidget(self.table_view)
        splitter.setStretchFactor(0, 2)
        splitter.setStretchFactor(1, 3)

        actions_layout = QtWidgets.QHBoxLayout()
        self.directory_label = QtWidgets.QLabel("No drive selected")
        self.apply_button = QtWidgets.QPushButton("Apply")
        actions_layout.addWidget(self.directory_label)
        actions_layout.addStretch(1)
        actions_layout.addWidget(self.apply_button)

        self.progress_bar = QtWidgets.QProgressBar()
        self.progress_bar.setRange(0, 100)
        self.progress_bar.setValue(0)

        self.log_view = QtWidgets.QPlainTextEdit()
        self.log_view.setReadOnly(True)
        self.log_view.setMaximumBlockCount(5000)

        main_layout.addWidget(splitter, 3)
        main_layout.addLayout(actions_layout)
        main_layout.addWidget(self.progress_bar)
        main_layout.addWidget(self.log_view, 1)
        self.setCentralWidget(central_widget)

        file_menu = self.menuBar().addMenu("File")
        self.open_action = file_menu.addAction("Open drive/folder...")
        self.exit_action = file_menu.addAction("Exit")

        options_menu = self.menuBar().addMenu("Options")
        self.log_action = options_menu.addAction("Enable log")
        self.log_action.setCheckable(True)
        advanced_menu = options_menu.addMenu("Advanced")
        self.monitor_action = advanced_menu.addAction("Monitor filesystem")
        self.monitor_action.setCheckable(True)
        self.sort_folders_action = advanced_menu.addAction("Sort folders")
        self.sort_folders_action.setCheckable(True)

    def _connect_signals(self) -> None:
        self.open_action.triggered.connect(self._select_directory)
        self.exit_action.triggered.connect(self.close)
        self.log_action.toggled.connect(self._on_log_toggled)
        self.monitor_action.toggled.connect(self._on_monitor_toggled)
        self.sort_folders_action.toggled.connect(self._on_sort_folders_toggled)
        self.apply_button.clicked.connect(self._apply_order)
        self.tree_widget.currentItemChanged.connect(self._on_tree_selection)
        self.table_model.rowMoveRequested.connect(self._on_row_moved)
        self.table_model.sortRequested.connect(self._on_sort_requested)
        self.table_view.horizontalHeader().sectionClicked.connect(self._on_header_clicked)
        self._log_handler.emitter.message.connect(self.log_view.appendPlainText)

    def closeEvent(self, event: QtGui.QCloseEvent) -> None:  # type: ignore[override]
        if self.session.busy:
            QtWidgets.QMessageBox.warning(self, "Busy", "Already busy sorting. Please wait.")
            event.ignore()
            return
        if self.session.has_unsaved_changes:
            confirm = QtWidgets.QMessageBox.question(
                self, "Exit?", "You have not saved your changes!\nAre you sure you want to exit?"
            )
            if confirm != QtWidgets.QMessageBox.StandardButton.Yes:
                event.ignore()
                return
        self._persist_settings()
        logging.getLogger("usbsorter").removeHandler(self._log_handler)
        self.coordinator.shutdown()
        super().closeEvent(event)

    def _select_directory(self) -> None:
        start = self.settings_manager.settings.last_directory or str(Path.home())
        directory = QtWidgets.QFileDialog.getExistingDirectory(
            self, "Select drive/root folder to reorder", start, QtWidgets.QFileDialog.Option.ShowDirsOnly
        )
        if directory:
            self.open_directory(Path(directory))

    def open_directory(self, directory: Path) -> None:
        try:
            model = self.session.open(directory)
        except OSError as exc:
            logger.error("Unable to open %s: %s", directory, exc)
            QtWidgets.QMessageBox.critical(self, "Error", "Error! Unable to open selected drive/folder.")
            return
        self.settings_manager.update_last_directory(directory)
        self.directory_label.setText(str(directory))
        self._populate_tree(model)

    def _populate_tree(self, model: OrderModel) -> None:
        self.tree_widget.clear()
        items = {model.root: QtWidgets.QTreeWidgetItem([model.node(model.root).name])}
        items[model.root].setData(0, NODE_ROLE, model.root)
        self.tree_widget.addTopLevelItem(items[model.root])
        for node_id in model.walk():
            for child_id in model.children(node_id):
                item = QtWidgets.QTreeWidgetItem(items[node_id], [model.node(child_id).name])
                item.setData(0, NODE_ROLE, child_id)
                items[child_id] = item
        items[model.root].setExpanded(True)
        self.tree_widget.setCurrentItem(items[model.root])

    def _refresh_tree_level(self, parent_id: int) -> None:
        model = self.session.model
        parent_item = self._find_tree_item(parent_id)
        if model is None or parent_item is None:
            return
        by_id = {}
        while parent_item.childCount():
            child = parent_item.takeChild(0)
            by_id[child.data(0, NODE_ROLE)] = child
        for child_id in model.children(parent_id):
            parent_item.addChild(by_id[child_id])

    def _find_tree_item(self, node_id: int) -> QtWidgets.QTreeWidgetItem | None:
        iterator = QtWidgets.QTreeWidgetItemIterator(self.tree_widget)
        while iterator.value() is not None:
            item = iterator.value()
            if item.data(0, NODE_ROLE) == node_id:
                return item
            iterator += 1
        return None

    def _on_tree_selection(self, current: QtWidgets.QTreeWidgetItem | None, _previous) -> None:
        if current is None:
            self.table_model.show_level(None, None)
            return
        self.table_model.show_level(self.session.model, current.data(0, NODE_ROLE))

    def _on_row_moved(self, from_row: int, to_row: int) -> None:
        parent_id = self.table_model.parent_id
        if parent_id is None or self.session.busy:
            return
        self.session.move_entry(parent_id, from_row, to_row)
        self.table_model.refresh()
        self.table_view.selectRow(to_row)
        self._refresh_tree_level(parent_id)

    def _on_header_clicked(self, section: int) -> None:
        header = self.table_view.horizontalHeader()
        descending = header.sortIndicatorOrder() == QtCore.Qt.SortOrder.AscendingOrder and header.isSortIndicatorShown()
        header.setSortIndicatorShown(True)
        order = QtCore.Qt.SortOrder.DescendingOrder if descending else QtCore.Qt.SortOrder.AscendingOrder
        header.setSortIndicator(section, order)
        self.table_model.sort(section, order)

    def _on_sort_requested(self, _column: int, descending: bool) -> None:
        parent_id = self.table_model.parent_id
        model = self.session.model
        if parent_id is None or model is None or self.session.busy:
            return
        self.session.sort_level(parent_id, model.sorted_children(parent_id, reverse=descending))
        self.table_model.refresh()
        self._refresh_tree_level(parent_id)

    def _apply_order(self) -> None:
        result = self.session.check()
        if isinstance(result, Rejected):
            QtWidgets.QMessageBox.critical(self, "Error", result.reason)
            return
        if self.session.state is SessionState.CLEAN:
            confirm = QtWidgets.QMessageBox.question(
                self,
                "Continue?",
                "You don't appear to have any unsaved changes.\nWould you like to continue anyway?",
            )
            if confirm != QtWidgets.QMessageBox.StandardButton.Yes:
                return
        confirm = QtWidgets.QMessageBox.warning(
            self,
            "Continue?",
            "Are you sure you want to continue?\n"
            f"Reordering drive/folder: {self.session.directory}\n"
            "This is potentially dangerous if the wrong drive is selected!!",
            QtWidgets.QMessageBox.StandardButton.Yes | QtWidgets.QMessageBox.StandardButton.No,
        )
        if confirm != QtWidgets.QMessageBox.StandardButton.Yes:
            return

        self.apply_button.setEnabled(False)
        self.table_view.setEnabled(False)
        self.progress_bar.setValue(0)
        QtWidgets.QApplication.setOverrideCursor(QtCore.Qt.CursorShape.WaitCursor)
        task = ApplyTask(self.session.apply)
        task.progressed.connect(self.progress_bar.setValue)
        task.succeeded.connect(self._on_apply_finished)
        task.failed.connect(self._on_apply_failed)
        task.done.connect(self._on_apply_done)
        self._apply_task = task
        self._apply_thread = start_task(task)

    def _on_apply_finished(self, outcome: object) -> None:
        if isinstance(outcome, Rejected):
            QtWidgets.QMessageBox.critical(self, "Error", outcome.reason)
        elif isinstance(outcome, ApplyReport) and outcome.stranded:
            stranded = "\n".join(str(path) for path in outcome.stranded)
            QtWidgets.QMessageBox.critical(
                self,
                "Major error",
                f"Some folders could not be moved back and were left at:\n{stranded}",
            )

    def _on_apply_failed(self, error: object) -> None:
        logger.error("Unexpected %s while sorting: %s", type(error).__name__, error)

    def _on_apply_done(self) -> None:
        QtWidgets.QApplication.restoreOverrideCursor()
        self.apply_button.setEnabled(True)
        self.table_view.setEnabled(True)
        self.table_model.refresh()
        self._apply_thread = None
        self._apply_task = None

    def _on_log_toggled(self, enabled: bool) -> None:
        self._log_handler.setLevel(logging.INFO if enabled else logging.CRITICAL + 1)
        if not enabled:
            self.log_view.clear()
        self.log_view.setEnabled(enabled)

    def _on_monitor_toggled(self, enabled: bool) -> None:
        self.coordinator.set_preference(enabled)

    def _on_sort_folders_toggled(self, enabled: bool) -> None:
        self.session.sort_folders = enabled

    def _apply_settings(self) -> None:
        settings = self.settings_manager.settings
        self.log_action.setChecked(settings.log_enabled)
        self.monitor_action.setChecked(settings.monitor_filesystem)
        self.sort_folders_action.setChecked(settings.sort_folders)
        self._on_log_toggled(settings.log_enabled)

    def _apply_style(self) -> None:
        if self.settings_manager.settings.theme == "dark":
            palette = (
                "QWidget { background-color: #1e1e1e; color: #f0f0f0; font-size: 12px; }"
                "QPushButton { padding: 6px 12px; background-color: #333333; }"
                "QTableView::item:selected { background-color: #4a90e2; color: white; }"
                "QHeaderView::section { padding: 6px; background: #2d2d2d; }"
            )
        else:
            palette = (
                "QWidget { font-size: 12px; }"
                "QPushButton { padding: 6px 12px; }"
                "QTableView::item:selected { background-color: #4a90e2; color: white; }"
                "QHeaderView::section { padding: 6px; background: #f0f0f0; }"
                "QPlainTextEdit { background-color: #ffffe1; }"
            )
        self.setStyleSheet(palette)

    def _persist_settings(self) -> None:
        self.settings_manager.update_options(
            log_enabled=self.log_action.isChecked(),
            monitor_filesystem=self.monitor_action.isChecked(),
            sort_folders=self.sort_folders_action.isChecked(),
        )
