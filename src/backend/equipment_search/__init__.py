"""
Equipment Search

Hybrid full-text and vector search over a heterogeneous equipment catalog,
with a query normalization pipeline for unit-tagged, multi-language parameters.
"""

__version__ = "1.0.0"
