"""
HelloStore services.
"""
