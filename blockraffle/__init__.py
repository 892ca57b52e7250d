"""Block-height scheduled raffle engine with eight geometric prize tiers."""

__version__ = "0.1.0"
