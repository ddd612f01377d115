"""XRPaper trading journal: price levels, study snapshots and execution plans."""

__version__ = "0.1.0"
