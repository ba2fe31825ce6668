"""
Catalog ingestion package.

Responsibilities:
- Read the seed product CSV.
- Normalize prices, ratings and list columns into product payloads.
- Create the products that are not in the catalog yet.
"""
