# Stores package init
"""
NoteSafe Backend — Storage Layer
==================================

Leaf adapters the account cascade is built on:
    - RecordStore / SqlRecordStore: transactional record access (users, notes)
    - FileStore / LocalFileStore:   image blob deletion, outside any transaction
"""
