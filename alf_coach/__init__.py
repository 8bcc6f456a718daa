"""ALF Coach conversation stage engine.

This package holds the stage state machine that drives the guided
blueprint conversation: input assessment, data capture, stage gating and
transitions. It has ZERO dependency on any UI framework or storage layer.
"""

__version__ = "0.3.0"
