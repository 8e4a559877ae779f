"""Admin dashboard analytics"""
