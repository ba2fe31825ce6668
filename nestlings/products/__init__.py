"""
Product catalog.

Responsibilities:
- Translate filter/sort/pagination requests into bounded SQL queries.
- Create, import and delete products together with their join rows.
- Cache query results and invalidate them on catalog writes.
"""
