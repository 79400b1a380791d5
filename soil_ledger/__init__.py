"""
Soil Data Submission Ledger

The bookkeeping and policy core for soil-sensor readings submitted by farm operators.
Validates and admits readings, keys them per farm/sensor/time, enforces quotas and
timestamp ordering, and pays out a one-time reward per accepted reading.
"""

__version__ = "1.0.0"
