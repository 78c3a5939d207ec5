# Supabase table: audit_logs
# Append-only record of state changes. Written fire-and-forget after the
# triggering request has produced its response.

"""
audit_logs:
- id: uuid (primary key)
- entity_type: text (PROJECT | CHECKLIST | INSPECTION | EVIDENCE | APPROVAL | ESCALATION | NOTIFICATION | PROJECT_MEMBER | PROFILE)
- entity_id: uuid
- action: text (e.g. CREATED, UPDATED, DELETED, SUBMITTED, APPROVED, REJECTED, ESCALATED)
- user_id: uuid (nullable, references profiles.id)
- metadata: jsonb (client ip, user agent, timestamp, operation specifics)
- created_at: timestamp (default: now())
"""
