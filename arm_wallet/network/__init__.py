"""
ARM Wallet Network Module

Broadcast sinks and payload sources for confidential transfers.
"""

from .bulletin import BroadcastSink, MemoryBulletin, JsonlBulletin

__all__ = [
    "BroadcastSink",
    "MemoryBulletin",
    "JsonlBulletin",
]
