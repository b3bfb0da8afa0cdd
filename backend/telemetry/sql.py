from __future__ import annotations

CREATE_EVENTS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS events (
  ts_ms BIGINT,
  endpoint TEXT,
  dataset TEXT,
  zoom INTEGER,
  bbox_south DOUBLE,
  bbox_west DOUBLE,
  bbox_north DOUBLE,
  bbox_east DOUBLE,
  stats_json TEXT
);
"""

SUMMARY_SQL_TEMPLATE = """
SELECT
  dataset,
  endpoint,
  COUNT(*) AS n,
  AVG(try_cast(json_extract(stats_json, '$.timingsMs.total') AS DOUBLE)) AS avg_total_ms,
  quantile_cont(try_cast(json_extract(stats_json, '$.timingsMs.total') AS DOUBLE), 0.50) AS p50_total_ms,
  quantile_cont(try_cast(json_extract(stats_json, '$.timingsMs.total') AS DOUBLE), 0.95) AS p95_total_ms,
  quantile_cont(try_cast(json_extract(stats_json, '$.timingsMs.total') AS DOUBLE), 0.99) AS p99_total_ms,
  AVG(try_cast(json_extract(stats_json, '$.markers') AS DOUBLE)) AS avg_markers,
  AVG(CASE WHEN try_cast(json_extract(stats_json, '$.cacheHit') AS BOOLEAN) THEN 1 ELSE 0 END) AS cache_hit_rate
FROM events
{where_sql}
GROUP BY dataset, endpoint
ORDER BY dataset, endpoint
"""

SLOWEST_SQL_TEMPLATE = """
SELECT
  ts_ms,
  dataset,
  endpoint,
  try_cast(json_extract(stats_json, '$.timingsMs.total') AS DOUBLE) AS total_ms,
  try_cast(json_extract(stats_json, '$.originalPointCount') AS BIGINT) AS point_count,
  try_cast(json_extract(stats_json, '$.cacheHit') AS BOOLEAN) AS cache_hit,
  zoom
FROM events
WHERE {where_sql}
ORDER BY total_ms DESC
LIMIT ?
"""

INSERT_EVENTS_SQL = """
INSERT INTO events
  (ts_ms, endpoint, dataset, zoom, bbox_south, bbox_west, bbox_north, bbox_east, stats_json)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
"""
