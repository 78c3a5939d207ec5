# Supabase table: notifications

"""
notifications:
- id: uuid (primary key)
- user_id: uuid (references profiles.id, the recipient)
- type: text (see NotificationType in schemas.py)
- title: text (1..100 chars)
- message: text (1..500 chars)
- related_entity_type: text (INSPECTION | PROJECT | APPROVAL | REPORT | ESCALATION)
- related_entity_id: uuid
- priority: text (LOW | MEDIUM | HIGH, default: MEDIUM)
- is_read: boolean (default: false)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
"""
