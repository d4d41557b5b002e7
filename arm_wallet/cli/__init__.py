"""
ARM Wallet CLI
"""
