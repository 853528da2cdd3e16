"""
Owner statement subsystem.

aggregator  - monthly revenue/expense totals and line items
manager     - statement records: generate, publish, notes, listing
renderer    - PDF document for one statement
access      - role and ownership checks
"""
from hostbaku.statements.access import Caller
from hostbaku.statements.errors import (
    StatementError, ValidationError, DuplicatePeriod, NotFound, Forbidden, StorageFailure,
)
