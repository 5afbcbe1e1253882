"""
py-levelgen: automatic board generator for block/triangle fit puzzle levels.
"""

__version__ = "0.1.0"
