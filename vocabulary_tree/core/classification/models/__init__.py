"""
Core models for Classification
"""
from .base import Classification, ItemClassification, Qualifier
