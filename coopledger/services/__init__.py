"""Database-backed services that feed the reconciliation engine"""
