"""Fuel station directory backend."""
