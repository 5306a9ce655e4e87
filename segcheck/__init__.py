"""
Decrypt HLS AES-128 segments and flag the ones with broken padding.
"""

__version__ = "1.0.0"
