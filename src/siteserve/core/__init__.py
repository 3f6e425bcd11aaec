"""Asset resolution core: path handling, media policy and backends."""
