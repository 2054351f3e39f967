"""Configuration, logging and validation utilities."""
