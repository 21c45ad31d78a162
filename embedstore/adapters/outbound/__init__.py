"""Outbound adapters: implementations of the core ports."""
