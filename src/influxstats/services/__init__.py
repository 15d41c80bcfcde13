"""
Services Layer
==============

Orchestration of buffering, queries and statistics.
"""

from .influx_client import InfluxClient

__all__ = ["InfluxClient"]
