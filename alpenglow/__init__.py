"""Alpenglow building blocks: hashing, Merkle trees, signatures, validator sampling and network messages."""

__version__ = "0.1.0"