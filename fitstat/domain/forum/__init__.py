"""Community forum"""
