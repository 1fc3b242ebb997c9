"""Register-level models of PlayStation 2 hardware blocks: GS, GIF, IPU, SIF, SIO, timers, vector units and a cycle scheduler."""

__version__ = "0.1.0"