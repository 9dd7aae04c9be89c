"""Command-line tools built on the trackmatch package."""
