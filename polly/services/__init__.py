from .supabase import SupabaseError, NotConfiguredError  # noqa: F401
from .identity import SupabaseAuth  # noqa: F401
from .data import SupabaseData, PollRepository, UNIQUE_VIOLATION  # noqa: F401
