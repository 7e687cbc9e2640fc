"""
Account Sync Module
===================
Feeds the reclaim engine with accounts the operator created.
"""

from reclaimer.modules.sync.core import AccountSyncJob

__all__ = ['AccountSyncJob']
