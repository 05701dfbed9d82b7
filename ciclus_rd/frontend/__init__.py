"""
Ciclus RD - Flet frontend
"""
