"""PostgreSQL connection pool and cost record stores."""
