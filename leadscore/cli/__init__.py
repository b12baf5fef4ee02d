"""
Command-line interface for the LeadScore engine.
"""
