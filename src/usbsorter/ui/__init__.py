"""UI components for the Stereo USB Sorter application."""

from .main_window import FolderTableModel, MainWindow, QtLogHandler

__all__ = ["FolderTableModel", "MainWindow", "QtLogHandler"]
