"""Channel subset policies and weak-channel selection."""

from .selectors import (
    ChannelSubsetPolicy,
    AllChannels,
    ChannelSubset,
    WeakestChannels,
    WeakChannelSelector
)

__all__ = [
    "ChannelSubsetPolicy",
    "AllChannels",
    "ChannelSubset",
    "WeakestChannels",
    "WeakChannelSelector"
]
