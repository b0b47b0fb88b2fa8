# Supabase table: posts
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

posts:
- id: uuid (primary key, default: gen_random_uuid())
- user_id: uuid (nullable, references auth.users.id; legacy anonymous posts have none)
- content: text (not null)
- created_at: timestamp (default: now())

Row level security:
- select: everyone
- insert: authenticated, with check (auth.uid() = user_id)
- delete: authenticated, using (auth.uid() = user_id)

Realtime: posts is part of the supabase_realtime publication so the feed
can refetch on any change.
"""

POST_COLUMNS = "id, user_id, content, created_at"
