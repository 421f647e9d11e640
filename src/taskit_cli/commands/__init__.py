"""Typer command groups for Taskit CLI."""
