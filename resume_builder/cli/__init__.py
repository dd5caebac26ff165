"""Command line interface for the resume builder."""
