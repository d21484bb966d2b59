"""Juice stored-value ledger and settlement engine"""
