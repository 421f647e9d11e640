"""Services module for Taskit CLI - business logic layer."""
