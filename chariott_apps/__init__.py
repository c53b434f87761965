"""Values, inspection entries, an observable key-value store, a client interface and dog mode logic for Chariott applications."""

__version__ = "0.1.0"