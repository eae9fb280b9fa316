"""
Store adapter and offline ingestion.

Responsibilities:
- Normalize loosely shaped parking space and transaction documents
  (current and legacy field names) into canonical records.
- Turn raw JSON document exports into the processed CSV files read by
  the space and history feeds.
"""
