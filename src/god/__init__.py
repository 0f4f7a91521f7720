"""
god: a minimal process supervisor meant to run as PID 1 in a container.

It runs one-time init tasks, then launches long-running services once every
init task succeeded, and reports the aggregate health over HTTP.
"""

__version__ = "1.0.0"
