"""
Ciclus RD - Field production reports (RD) dashboard
"""

__version__ = "1.0.0"
