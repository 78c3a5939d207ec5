# Supabase Auth + profiles
# Credentials and sessions live in Supabase Auth (auth.users).
# Application identity lives in public.profiles, keyed by the auth user id.

"""
Supabase Auth provides:
- auth.sign_up() - Register new users
- auth.sign_in_with_password() - Authenticate users
- auth.get_user() - Resolve the user behind a JWT access token
- auth.sign_out() - End the session

profiles:
- id: uuid (primary key, references auth.users.id)
- email: text (unique, not null)
- name: text (not null)
- role: text (EXECUTIVE | PROJECT_MANAGER | INSPECTOR)
- avatar: text (nullable)
- is_active: boolean (default: true)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

A request is authenticated only when the token resolves to an auth user AND
a profiles row exists for that user. The role used by the RBAC gate is always
read from profiles, never from token metadata.
"""
