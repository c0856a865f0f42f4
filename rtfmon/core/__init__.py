"""Core primitives: running statistics, histogram, trend window, ingestion.
"""
