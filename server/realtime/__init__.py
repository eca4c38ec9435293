"""
Realtime clipboard relay app.

This app contains:
- A Channels consumer for `/ws/clipboard/`
- In-memory sessions (current text + bounded history) and membership tracking
- HTTP views for session issuance and lookup
- A periodic janitor that evicts idle sessions
"""
