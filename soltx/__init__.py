"""
soltx - Solana transaction decoding and fee estimation
"""

__version__ = "0.1.0"
