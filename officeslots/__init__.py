"""
officeslots - weekly appointment slot availability for provider offices.
"""

__version__ = "0.3.0"
