"""shardctl - Declarative Homebrew package configuration with shards."""

__version__ = "0.3.0"
