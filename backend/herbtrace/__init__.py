"""HerbTrace — herbal supply-chain traceability backend."""

__version__ = "0.1.0"
