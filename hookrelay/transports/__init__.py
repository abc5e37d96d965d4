"""hookrelay chat transports."""

from hookrelay.transports.base import DeliveryError, Transport
from hookrelay.transports.discord_transport import DiscordTransport
from hookrelay.transports.router import TransportRouter
from hookrelay.transports.signal_transport import SignalTransport

__all__ = [
    "DeliveryError",
    "Transport",
    "DiscordTransport",
    "SignalTransport",
    "TransportRouter",
]
