"""CLI module for jellyzap."""
