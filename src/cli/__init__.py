"""Command line surface for metaconv."""
