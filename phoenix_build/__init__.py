"""
phoenix - version stamping and release packaging for CMake projects.
"""

__version__ = "0.1.0"
