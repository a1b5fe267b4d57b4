"""
Command-line interface for soltx.
"""
