"""Persistence codec and clock sample sources.
"""
