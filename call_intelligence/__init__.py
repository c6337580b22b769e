"""
Call Intelligence Pipeline
Transcript search, per-call analysis and team digests for a sales team
"""

__version__ = "1.0.0"
