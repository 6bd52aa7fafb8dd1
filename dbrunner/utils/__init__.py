"""Utility modules for dbrunner."""
