"""Outer interfaces (command line) for Makelaarwatch."""
