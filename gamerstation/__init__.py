"""
GamerStation API

FastAPI service behind the GamerStation calculators: thin routes over
``calc_core`` plus cached proxies for Riot, Data Dragon, Jagex and Battle.net.
"""

__version__ = "1.0.0"
