"""
Core Utilities Package

JSON serialization helpers for exam documents and score records.
"""
