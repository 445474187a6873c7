from .relay_config import BroadcastMode, ChannelPolicy, RelayConfig

__all__ = ["BroadcastMode", "ChannelPolicy", "RelayConfig"]
