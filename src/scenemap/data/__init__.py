"""Packaged scene defaults and safety tables."""
