# Supabase table: approvals
# One row per review decision; an inspection accumulates a history of them.

"""
approvals:
- id: uuid (primary key)
- inspection_id: uuid (references inspections.id)
- approver_id: uuid (references profiles.id)
- decision: text (APPROVED | REJECTED)
- notes: text (1..1000 chars)
- review_date: timestamp
- is_escalated: boolean (default: false)
- escalation_reason: text (nullable)
- created_at: timestamp (default: now())
"""
