# Supabase table: checklists

"""
checklists:
- id: uuid (primary key)
- project_id: uuid (references projects.id)
- name: text (not null, 1..100 chars)
- description: text (nullable)
- version: text (default: '1.0')
- questions: jsonb (array of questions, see below)
- is_active: boolean (default: true)
- created_by: uuid (references profiles.id)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Question shape:
{
  "id": "<uuid>",
  "type": "text" | "number" | "boolean" | "select" | "multiselect" | "file",
  "question": "<prompt>",
  "required": bool,
  "evidence_required": bool,
  "options": ["..."],            # select / multiselect only
  "validation": {"min": n, "max": n, "pattern": "..."}
}

A checklist referenced by any inspection cannot be deleted.
"""
