"""
Chat relay: registers users with Stream Chat, answers their messages with an
OpenAI chat model and keeps every turn in PostgreSQL.
"""
