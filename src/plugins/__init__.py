"""
Plugin system for alertsync.

This package provides the notifier codecs, one per supported notifier
kind, and the registry that indexes them.
"""

from plugins.base import NotifierDescriptor, StatePair
from plugins.notifiers.base import NotifierCodec, NotifierField
from plugins.registry import NotifierRegistry, get_registry

__all__ = [
    "NotifierDescriptor",
    "StatePair",
    "NotifierCodec",
    "NotifierField",
    "NotifierRegistry",
    "get_registry",
]
