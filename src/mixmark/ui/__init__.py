"""User interfaces built on top of the mixmark API."""
