"""
Repositories package

Each repository encapsulates database operations for one part of the OAI
cache:
- record_repository.py: records and the set/date selection query
- set_repository.py: sets and their pager limits
- member_repository.py: record/set memberships
- token_repository.py: resumption token store and its id sequence
- entity_repository.py: bundled content entity store

Usage:
    from repositories.record_repository import RecordRepository
    earliest = RecordRepository.earliest_created()
"""
