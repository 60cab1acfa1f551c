"""Command-line tools for seqhmm."""
