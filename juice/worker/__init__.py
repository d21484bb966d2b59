"""Background workers for the Juice ledger"""
