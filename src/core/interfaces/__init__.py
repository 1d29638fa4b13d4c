"""Core contracts.

Protocols implemented by the adapters, so services depend on abstractions
and tests can hand in fakes.
"""
