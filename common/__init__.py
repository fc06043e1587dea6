"""
Infrastructure shared by the storefront that knows nothing about users
or sessions: the MongoDB connection, bcrypt hashing, base settings, JSON
envelopes and coded HTTP exceptions.
"""
