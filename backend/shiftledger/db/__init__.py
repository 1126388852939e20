"""ORM declarative base; engine and sessions live in infrastructure/database.py."""
