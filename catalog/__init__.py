"""Multi-tenant product catalog backend."""
