"""NutriLens: multi-source ingredient research aggregation and safety synthesis."""

from __future__ import annotations

__version__ = "0.1.0"
