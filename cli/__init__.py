"""Command line entry point for the Awair exporter."""
