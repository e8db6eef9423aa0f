"""
starledger core — chain, validator, admission protocol.
"""
