# Supabase table: inspections

"""
inspections:
- id: uuid (primary key)
- project_id: uuid (references projects.id)
- checklist_id: uuid (references checklists.id)
- assigned_to: uuid (references profiles.id)
- title: text (not null, 1..255 chars)
- description: text (nullable)
- status: text (DRAFT | PENDING | IN_REVIEW | APPROVED | REJECTED, default: DRAFT)
- priority: text (LOW | MEDIUM | HIGH, default: MEDIUM)
- due_date: timestamp (nullable)
- responses: jsonb (object keyed by checklist question id)
- rejection_count: integer (0..2, default: 0)
- latitude, longitude, accuracy: double precision (nullable)
- address: text (nullable)
- submitted_at: timestamp (nullable)
- completed_at: timestamp (nullable, set on approval)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Status transitions are defined in state_machine.py.
"""
