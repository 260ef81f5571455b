"""
Hierarchical controlled vocabularies for browsing collections by category.
"""
__version__ = "0.1.0"
