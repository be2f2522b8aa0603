"""Replay engine: execution instance, task wrapping and workflow driver."""
