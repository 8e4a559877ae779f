"""Payments: gateway intents, confirmed bookings and refunds"""
