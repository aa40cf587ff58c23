"""Pawprint social API: accounts, guest lifecycle and comment interactions."""
