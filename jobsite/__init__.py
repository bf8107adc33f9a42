"""Jobsite coordination service: projects, threads, channels and daily logs."""

__version__ = "1.0.0"
