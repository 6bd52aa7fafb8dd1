"""
Dialect policies for dbrunner.

Importing this package registers the PostgreSQL and Oracle policies.
"""

from .base import (
    DialectPolicy,
    DialectRegistry,
    RunnerCommand,
    get_policy,
    register_dialect,
)

# Import policies to register them
from . import oracle, pg  # noqa: F401

__all__ = [
    "DialectPolicy",
    "DialectRegistry",
    "RunnerCommand",
    "get_policy",
    "register_dialect",
]
