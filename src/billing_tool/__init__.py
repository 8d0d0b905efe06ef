"""
Billing Tool Package

A billing reconciliation tool for monthly contract invoicing.
Joins active-employee counts with contract pricing rules by CNPJ and
computes the billed amount for each company.
"""

__version__ = "1.0.0"
