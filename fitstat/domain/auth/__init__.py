"""Authentication domain: registration, login and token management"""
