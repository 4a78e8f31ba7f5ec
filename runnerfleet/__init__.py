"""Helpers for fleets of self-hosted CI runners: hashing, labels, replica sets, schedules and HTTP transports."""

__version__ = "0.1.0"

__all__ = [
    "fake_github",
    "hashing",
    "labels",
    "logs",
    "metrics",
    "replicasets",
    "schedule",
]