"""DepotPilot: HP SoftPaq repository and fleet deployment backend."""

__version__ = "0.1.0"
