"""
Loto Bonheur Prediction Service
===============================

Historical draw storage, statistics and heuristic number scoring for the
Loto Bonheur 5/90 lottery, served through a FastAPI application.
"""

__version__ = "1.0.0"
