"""Core rendering primitives: profiles, scanning, sizing and diagnostics."""
