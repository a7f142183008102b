"""
Shared helpers: errors, logging, text and monitoring utilities.
"""
