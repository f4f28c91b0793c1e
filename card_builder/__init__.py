"""Print geometry, design model and export engine for cards, postcards and prints"""

__version__ = "0.1.0"
