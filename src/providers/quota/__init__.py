from src.providers.quota.sqlite_quota_store import SQLiteQuotaStore

__all__ = ["SQLiteQuotaStore"]
