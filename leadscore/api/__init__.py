"""
REST API for the LeadScore engine.
"""
