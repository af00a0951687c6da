# src/configweave/core/__init__.py
"""
Core do ConfigWeave.
"""
