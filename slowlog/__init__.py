"""slowlog — chunked slow-query log analysis with rotating CSV reports."""
