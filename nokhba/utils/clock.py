"""
Naive-UTC clock shared by models and services
"""
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current UTC time without tzinfo (the form stored in the database)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)
