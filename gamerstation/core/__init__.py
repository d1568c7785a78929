"""Core configuration: paths, TTLs, Cache-Control headers, feature flags."""
