"""
Bounded point query engine.

A point source (JSON files on disk, or in-memory) is optionally partitioned into
tiles; the query service loads only the tiles a bbox touches, through a TTL cache.
"""
