"""
SwagCo Modules
==============

Flask blueprint modules for the screen-printing shop API.
"""

__all__ = ['admin', 'artwork', 'auth', 'campaigns', 'discounts', 'email', 'garments',
           'ops', 'orders', 'payments', 'pricing']
