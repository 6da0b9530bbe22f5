"""Clients for hosted ledger storage."""
