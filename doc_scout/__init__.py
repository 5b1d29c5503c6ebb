# doc_scout/__init__.py
"""
DocScout package initializer.
Defines the package version; the CLI lives in :mod:`doc_scout.cli`.
"""
__version__ = "0.1.0"
