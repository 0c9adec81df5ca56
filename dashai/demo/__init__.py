"""
Demo data for trying the assistant locally.
"""
