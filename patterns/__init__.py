"""Reusable building blocks shared by the catalog vertical.

Each module is domain-neutral: form rules, repository base class and
environment-driven configuration.
"""
