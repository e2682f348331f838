"""Release calendar: read-only queries over a Supabase catalogue."""
