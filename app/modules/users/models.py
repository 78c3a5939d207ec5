# Supabase table: profiles
# One row per Supabase Auth user; see app/modules/auth/models.py for columns.
# Users may edit their own name and avatar; role and is_active are managed
# by administrators directly in the database.
