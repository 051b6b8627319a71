"""Threaded discussion engine for a school community forum."""
