# Supabase table: escalation_queue

"""
escalation_queue:
- id: uuid (primary key)
- inspection_id: uuid (references inspections.id)
- original_manager_id: uuid (references profiles.id, the manager who escalated)
- escalated_to: uuid (nullable, references profiles.id; executive or alternate manager)
- escalation_reason: text (not null)
- priority_level: text (LOW | MEDIUM | HIGH | URGENT, default: MEDIUM)
- status: text (QUEUED | NOTIFIED | RESOLVED | EXPIRED, default: QUEUED)
- notification_count: integer (default: 0)
- resolved_at: timestamp (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Status transitions (caller driven, no timers):
    QUEUED   -> NOTIFIED | EXPIRED
    NOTIFIED -> RESOLVED | EXPIRED
An inspection has at most one active (QUEUED or NOTIFIED) escalation.
"""
