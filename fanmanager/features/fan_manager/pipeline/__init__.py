"""
Pipeline components for the fan manager.

Pure, per-relationship computations: scoring (health, risk, segment, stage,
tone) feeding the decision engine. Nothing here performs I/O.
"""

__all__ = ["decision", "scoring"]
