"""
Core configuration and error types for the LeadScore engine.
"""
