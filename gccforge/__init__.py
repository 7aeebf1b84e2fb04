"""gccforge — GCC cross-toolchain build orchestrator."""

__version__ = "0.1.0"
