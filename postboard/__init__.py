"""Postboard: users, posts and comments over a relational store."""

__version__ = "0.1.0"
