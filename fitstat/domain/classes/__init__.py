"""Class directory: listings, capacity and booking counters"""
