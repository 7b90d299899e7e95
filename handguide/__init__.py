"""
Record, compress and replay two-hand demonstrations as adaptive guidance.
"""
__version__ = "0.1.0"
