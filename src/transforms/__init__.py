"""Record classification and series post-processing stages."""
