"""
Parsing, scheduling and persistence services.
"""
