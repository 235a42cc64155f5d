"""Core reconciliation engine for shardctl."""
