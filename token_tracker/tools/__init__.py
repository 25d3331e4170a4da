"""
Operator tools for the token tracker database.
"""
