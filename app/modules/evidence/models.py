# Supabase table: evidence
# Blobs live in object storage (S3 when configured, otherwise the Supabase
# Storage bucket `evidence-files`); this table holds the metadata.

"""
evidence:
- id: uuid (primary key)
- inspection_id: uuid (references inspections.id)
- uploaded_by: uuid (references profiles.id)
- question_id: text (nullable, checklist question the file supports)
- filename: text
- original_name: text
- mime_type: text (image/jpeg|jpg|png|webp|gif, video/mp4|mov|quicktime|avi|x-msvideo|webm)
- file_size: bigint (bytes, <= 50MB)
- storage_path: text (object key)
- public_url: text
- latitude, longitude, accuracy: double precision (nullable)
- annotations: jsonb (array of {x, y, text} with x, y normalized to 0..1)
- verified: boolean (default: false, set by a project manager)
- metadata: jsonb
- timestamp: timestamp (capture / upload time)
- created_at: timestamp (default: now())

The evidence of one inspection totals at most 1GB.
"""
