"""
Fund Portal - Source Package

A personal-finance portal: user accounts plus six deterministic
financial-projection calculators (retirement corpus, salary savings,
systematic withdrawal, cash surplus, 70-year projection, corpus needed).

DESIGN PRINCIPLES:
1. The calculation engine is pure: no I/O, no hidden state
2. Validate forms before calculating, never silently fix input
3. Formatting is a presentation concern, not an engine one
4. Every account action is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Fund Portal Team"
