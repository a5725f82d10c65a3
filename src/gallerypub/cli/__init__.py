"""Command line entry points for gallerypub."""
