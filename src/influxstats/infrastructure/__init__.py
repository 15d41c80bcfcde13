"""
Infrastructure Layer
====================

InfluxDB transport, query construction and result conversion.
"""
