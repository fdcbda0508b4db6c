"""
Bujo Package
============

A personal bullet-journal tracker backed by a relational store.

The package keeps daily, monthly and future logs, collections and
meeting notes in a SQLite database, and implements the entry lifecycle
that keeps one logical task consistent across its physical copies.

Subpackages:
    core: Exceptions, logging, validation and project paths
    database: ORM models, entity managers, engine and CLI
    utils: Date helpers and rapid-log parsing
    migrations: Alembic schema migrations
"""

__version__ = "1.0.0"
