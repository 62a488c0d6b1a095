"""Output layer.

This package renders validated rows and anomalies as CSV files.
It owns file naming and whole-file rewrites.
"""
