"""sqlflight - stream SQL query results as Arrow record batches."""

__version__ = "0.1.0"
