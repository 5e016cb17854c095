"""Shared utilities for the provenance kernel."""
