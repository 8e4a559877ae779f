"""Class and trainer reviews"""
