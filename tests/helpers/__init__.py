"""Shared helpers for proofmark tests."""
