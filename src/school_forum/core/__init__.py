"""Core configuration, errors and permission rules."""
