"""
Command-line interface for segrecon.
"""
