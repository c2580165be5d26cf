"""Demo account and dataset seeding through Supabase."""

from .supabase import SupabaseAdmin
from .seeder import DemoDataSeeder, SeedResult

__all__ = ["SupabaseAdmin", "DemoDataSeeder", "SeedResult"]
