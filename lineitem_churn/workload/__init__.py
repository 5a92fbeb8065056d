from .coordinator import Coordinator
from .insert_worker import InsertWorker
from .update_worker import UpdateWorker, select_row
from .window import WindowState

__all__ = ["Coordinator", "InsertWorker", "UpdateWorker", "WindowState", "select_row"]
