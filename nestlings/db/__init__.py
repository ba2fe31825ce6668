"""Relational storage: engine, sessions, ORM schema and seeding."""
