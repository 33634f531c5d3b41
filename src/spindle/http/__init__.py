"""Minimal immutable HTTP message types used by the dispatcher."""
