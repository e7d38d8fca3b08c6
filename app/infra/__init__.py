"""Infrastructure modules for the HCPCS Rate Suite.

This package contains low-level infrastructure concerns:
- Result caching
- Outbound HTTP with retries
- Executor helpers and runtime settings
"""
