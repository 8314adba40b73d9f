from app.tasks.auto_sync_task import AutoSyncScheduler, get_auto_sync_scheduler

__all__ = ["AutoSyncScheduler", "get_auto_sync_scheduler"]
