"""
Domain layer for the farm logistics platform.
Contains warehouse allocation, inventory-lot lifecycle and order workflow logic
separated from data persistence concerns.
"""
