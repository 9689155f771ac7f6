"""ReRide conversation and offer negotiation service."""

__version__ = "0.1.0"
