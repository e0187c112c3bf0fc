"""
remotetest - Remote integration test runner for Stackable test clusters
"""

__version__ = "0.1.0"

from .core import RemoteTestRunner, RunnerError

__all__ = ["RemoteTestRunner", "RunnerError"]
