"""Domain layer.

Pure business logic without I/O:
- state_machine: workflow status transitions
- transformers: ORM rows to API payloads
"""
