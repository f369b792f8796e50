"""Recipe catalog domain.

A single `Recipe` entity kept in a key-value table keyed by id. Three stateless
operations sit on top of it:

- upsert: create when no id is given, otherwise replace the stored record while
  keeping its `createdAt`.
- list: full scan, optionally filtered by a case-sensitive substring of name or
  content, newest first.
- delete: idempotent removal by id.

No locking and no version checks, so concurrent updates are last-write-wins.
"""
