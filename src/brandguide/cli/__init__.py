"""brandguide command-line interface."""
