"""A small unit-testing harness with resource lists, argument packing, try frames and synchronisation primitives."""

__version__ = "2.1.0"