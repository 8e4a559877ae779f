"""Newsletter subscriptions"""
