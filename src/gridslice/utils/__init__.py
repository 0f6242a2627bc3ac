"""Shared utilities for gridslice."""
