"""
Persistence models for the farm logistics platform.
"""
