"""Shared infrastructure: error taxonomy, structured logging, trace ids."""
