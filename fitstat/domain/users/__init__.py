"""User and trainer directory"""
