"""
Console entry point.
"""
