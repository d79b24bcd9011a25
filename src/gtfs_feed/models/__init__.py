"""Feed records, the Feed aggregate and query results."""
