# __init__.py
# py2048: rules engine for the 2048 sliding-tile puzzle, plus its adapters.

__version__ = "1.0.0"
