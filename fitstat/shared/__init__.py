"""Helpers shared by every domain"""
