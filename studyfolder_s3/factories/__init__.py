"""Factories wiring settings into storage objects."""
