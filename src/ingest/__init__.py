"""Archive reading layer.

This package decodes directory-index files and numbered price files.
It drives the per-folder conversion pipeline.
"""
