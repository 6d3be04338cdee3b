"""Airtable to PostgreSQL mirror backend."""
