# Supabase tables: projects, project_members
# This file documents the expected database schema
# Actual operations are handled via SupabaseDatabase in app/database/repository.py

"""
projects:
- id: uuid (primary key)
- name: text (not null, 1..100 chars)
- description: text (nullable)
- status: text (ACTIVE | COMPLETED | ON_HOLD | CANCELLED, default: ACTIVE)
- start_date: date (not null)
- end_date: date (nullable, strictly after start_date)
- latitude: double precision (nullable, -90..90)
- longitude: double precision (nullable, -180..180)
- address: text (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

project_members:
- id: uuid (primary key)
- project_id: uuid (references projects.id)
- user_id: uuid (references profiles.id)
- role: text (PROJECT_MANAGER | INSPECTOR | EXECUTIVE)
- created_at: timestamp (default: now())
- unique (project_id, user_id)

A project has at most 10 members. Its creator is always added as a
PROJECT_MANAGER member. A project cannot be deleted while it has inspections.
"""
