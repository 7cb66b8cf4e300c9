"""
Services Layer
Read-only query services used by reporting and dashboards.

Services should:
- Not modify core data models or business logic
- Can read from multiple data models to aggregate information
- Be stateless where possible
"""
