"""
Ad-Spend Analyzer
Normalizes schema-less ad exports and scores campaign performance
"""
__version__ = "1.0.0"
