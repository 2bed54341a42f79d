"""Services for scanning a volume and reordering its folders on disk."""

from .coordinator import MonitorCoordinator
from .detector import ChangeDetector, divergence_point
from .engine import ApplyReport, ReorderEngine, StructuralReadError
from .fsops import DryRunFileSystem, LocalFileSystem
from .model import DirectoryNode, OrderModel
from .monitor import FilesystemMonitor
from .paths import CONFIG_DIR, LOG_DIR, ensure_config_dir
from .preconditions import ApplyContext, CheckResult, Ready, Rejected, check_preconditions
from .scanner import DirectoryScanner, ScanFilters, scan_tree
from .session import SessionState, SessionStateError, SortSession
from .settings import SettingsManager, UserSettings
from .tempnames import TempNameAllocator
from .workers import ApplyTask, start_task

__all__ = [
    "MonitorCoordinator",
    "ChangeDetector",
    "divergence_point",
    "ApplyReport",
    "ReorderEngine",
    "StructuralReadError",
    "DryRunFileSystem",
    "LocalFileSystem",
    "DirectoryNode",
    "OrderModel",
    "FilesystemMonitor",
    "CONFIG_DIR",
    "LOG_DIR",
    "ensure_config_dir",
    "ApplyContext",
    "CheckResult",
    "Ready",
    "Rejected",
    "check_preconditions",
    "DirectoryScanner",
    "ScanFilters",
    "scan_tree",
    "SessionState",
    "SessionStateError",
    "SortSession",
    "SettingsManager",
    "UserSettings",
    "TempNameAllocator",
    "ApplyTask",
    "start_task",
]
