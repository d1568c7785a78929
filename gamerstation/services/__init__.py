"""
GamerStation Services
Upstream clients and cached lookups used by the API routers.
"""
