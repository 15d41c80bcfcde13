"""
Domain Layer
============

Points, result datasets and statistics. No I/O.
"""
