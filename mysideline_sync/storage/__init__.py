from .carnival_repo import CarnivalRepo
from .sync_run_repo import SyncRunRepo

__all__ = ["CarnivalRepo", "SyncRunRepo"]
