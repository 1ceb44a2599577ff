"""brandguide HTTP API."""
